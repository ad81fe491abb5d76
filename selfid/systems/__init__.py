"""SelfID — Systems."""
