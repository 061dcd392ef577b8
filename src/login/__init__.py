"""Login subsystem: session token utilities and the identity backend client."""
