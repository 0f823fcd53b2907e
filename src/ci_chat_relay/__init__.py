"""CI Chat Relay - chat commands for a Jenkins server."""
