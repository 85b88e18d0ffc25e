from .auth import CurrentIdentity, authenticate

__all__ = ["CurrentIdentity", "authenticate"]
