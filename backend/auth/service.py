from typing import Dict, Any
from .repository import get_user_from_access_token as _repo_get_user_from_token

def determine_role(metadata: Dict[str, Any] | None) -> str:
    role_lower = str((metadata or {}).get("role", "")).lower()
    if role_lower == "admin":
        return "admin"
    return "user"

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, metadata, role, token}
    - Le rôle vient de app_metadata (posé côté serveur) puis user_metadata
    """
    raw = _repo_get_user_from_token(access_token)
    metadata = raw.get("user_metadata") or {}
    app_metadata = raw.get("app_metadata") or {}
    role = determine_role(app_metadata if app_metadata.get("role") else metadata)
    return {"id": raw.get("id"), "email": raw.get("email"), "metadata": metadata, "role": role, "token": access_token}
