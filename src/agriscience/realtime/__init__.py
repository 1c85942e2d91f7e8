"""Real-time infrastructure — WebSocket push to authenticated users.

Learn: Events flow one way:
1. A write commits in the store
2. The store fires its post-commit listeners (WriteNotifier)
3. WriteNotifier asks the ConnectionRegistry to send to the owning user

Connections authenticate in-band after the socket opens; the registry
keeps exactly one live connection per user.
"""
