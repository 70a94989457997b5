from .provider import IdentityProvider, StaticIdentityProvider, Web3IdentityProvider  # re-export
