"""HTTP routers for the ClassMate API."""
