"""
Mock backend.

FakeStoreBackend answers store and login calls in-process through
httpx.MockTransport, without calling any external API.
It is used when:
- We want to test flows end-to-end without network access
- We need to hold a response back to observe in-flight state (cart queue)

Important:
- The fake is plugged in at the httpx client seam, so the SDK runs its real
  transport, builder and classifier code against it.
- Fake responses are shaped according to src/integrations/contracts/*
"""
