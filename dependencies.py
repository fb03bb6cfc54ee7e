# dependencies.py
"""
Shared FastAPI dependencies: bearer-token auth and tenant scoping.
"""
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

import config

MANAGER_ROLES = ("admin", "manager")


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ", 1)[1]
     try:
          return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def get_tenant_id(token: dict = Depends(verify_token)) -> int:
     """The organization every query of this request is scoped to."""
     tenant_id = token.get("tenant_id")
     if tenant_id is None:
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="Token is not bound to a tenant"
          )
     try:
          return int(tenant_id)
     except (TypeError, ValueError):
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid tenant in token")


def require_manager(token: dict = Depends(verify_token)) -> dict:
     if token.get("role") not in MANAGER_ROLES:
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="Only admins and managers can perform this action"
          )
     return token
