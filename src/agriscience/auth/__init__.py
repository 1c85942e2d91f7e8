"""Authentication.

Learn: Users log in with email/password and receive a JWT. The JWT is
then presented as a Bearer header on HTTP calls, and inside the auth
message on the realtime WebSocket.
"""
