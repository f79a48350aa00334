"""Interactive choosers for human-in-the-loop disambiguation."""
