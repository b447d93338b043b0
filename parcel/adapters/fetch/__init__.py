"""Mirror fetch provider."""
