"""HTTP plumbing: page fetching, request pacing and error taxonomy."""
