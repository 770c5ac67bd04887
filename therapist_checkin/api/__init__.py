"""HTTP surface: routers, request/response bodies, guards."""
