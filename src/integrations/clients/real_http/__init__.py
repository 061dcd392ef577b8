"""
Real HTTP client pieces.

- transport.py: HttpRequest / HttpTransport over httpx.AsyncClient
- request_builder.py: URL metadata, identification headers, bearer token, JSON body

Important:
- Requests are built first and started later; the cart queue relies on the
  request status to know what is in flight.
- Responses are returned raw; classification lives in src/integrations/policy.
"""
