"""Gateway chat client components."""
