"""
wplookup - Whitepages Contact Lookup

Drives a browser through the Whitepages login, search, consent and
Cloudflare Turnstile screens and returns structured contact records
(address, phone, email, birthday, county) for a batch of name/location
queries. Available as a CLI and as an HTTP endpoint.
"""

__version__ = "0.1.0"
__author__ = "wplookup Contributors"
