"""
Steam OIDC Bridge - an OpenID Connect provider backed by Steam sign-in.

Downstream clients use the standard Authorization Code flow; users
authenticate with Steam over OpenID 2.0 and receive ID tokens whose
subject is their Steam ID.
"""

__version__ = "0.1.0"
