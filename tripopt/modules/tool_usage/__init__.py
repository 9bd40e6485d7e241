"""modules/tool_usage: external collaborators: distance/time and trip data providers."""
