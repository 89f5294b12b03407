from typing import Dict, Any
from urllib.parse import urlparse
from fastapi import Request, Response, HTTPException
import hashlib
import logging
import os
import time

from backend.utils.security import _token_from_request

logger = logging.getLogger(__name__)


def _client_key(req: Request) -> str:
    # Priorité: token (Bearer ou cookie de session, hashé) puis IP
    token = _token_from_request(req)
    path = req.url.path
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"user:{h}:{path}"
    ip = req.client.host if req.client else "local"
    return f"ip:{ip}:{path}"

def _prune_expired(store: Dict[str, list], now: float, seconds: int) -> None:
    # Clés dont la dernière requête est hors fenêtre
    for key in [k for k, hits in store.items() if not hits or now - hits[-1] >= seconds]:
        del store[key]

def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance de limitation de débit (ex: création de commandes).
    - LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (dev, mono-instance)
    - sinon fastapi-limiter (Redis) si initialisé par le lifespan, no-op s'il est désactivé
    """
    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _client_key(request)
            # Un magasin par fenêtre: la purge n'affecte que les clés de même durée
            stores = getattr(request.app.state, "_rl_store", {})
            store = stores.setdefault(seconds, {})
            _prune_expired(store, now, seconds)
            hits = [t for t in store.get(key, []) if now - t < seconds]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now)
            store[key] = hits
            request.app.state._rl_store = stores
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        try:
            from fastapi_limiter.depends import RateLimiter
            async def _identifier(req: Request) -> str:
                return _client_key(req)
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Limiteur indisponible (ex: Redis tombé): pas de 429 en prod
            logger.debug("rate_limit unavailable path=%s: %s", request.url.path, e)
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    limiter_ready = False
    try:
        from fastapi_limiter import FastAPILimiter
        limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    except Exception:
        limiter_ready = False

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": "redis" if limiter_ready else None,
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if limiter_ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
