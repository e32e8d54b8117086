"""gwmail - Gmail forwarding and label tooling for Google Workspace.

Namespace package containing:
- gwmail.sdk: Core SDK for composing forwards and mutating labels via the Gmail API
- gwmail.cli: Command-line interface
"""

__version__ = "0.3.0"
