"""Core building blocks shared by every cencli command."""
