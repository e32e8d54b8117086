"""gwmail SDK - Core library for forwarding and labeling Gmail messages.

This SDK provides programmatic access to the Gmail API with multi-profile
authentication support. It can be used by:
- The gwmail CLI
- Third-party applications

Example usage:
    from gwmail.sdk import profiles, mail

    # List available profiles
    for profile in profiles.list_profiles():
        print(f"{profile['name']}: {profile['email']}")

    # Forward a message using the active profile
    result = mail.forward_message("18c2f...", to="someone@example.com")
"""

from . import config
from . import profiles
from . import auth
from . import mail

__all__ = ["config", "profiles", "auth", "mail"]
