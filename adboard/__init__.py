"""Advertisement board API: comments, replies and reactions."""
