"""Client-side half of the auth flow: API calls, forms and the session cache."""
