"""gwmail CLI - Command-line interface for forwarding and labeling Gmail messages."""
