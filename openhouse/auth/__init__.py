"""Authentication of hosted-auth access tokens."""
