"""Search sessions and their result buffers."""
