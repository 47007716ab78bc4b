"""
Identity core for organizers of waitlist pages.

Organizers authenticate with a password, a Google account, a GitHub
account, or any combination of these. See :mod:`waitlist_auth.identity`
for the inbound operations and :mod:`waitlist_auth.factory` for the Flask
application that exposes them over HTTP.
"""
