"""
Registre central des routers.
- API v1: tunnel de commande (create/verify), lecture des commandes, coupons
- Admin: gestion des commandes
- Health: liveness et dépendances
"""
from fastapi import FastAPI
from backend.checkout import views as checkout_views
from backend.orders import views as orders_views
from backend.coupons import views as coupons_views
from backend.admin.views import router as admin_router
from backend.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # Tunnel de commande avant /api/v1/orders/{order_id}
    app.include_router(checkout_views.router)
    app.include_router(orders_views.router)
    app.include_router(coupons_views.router)
    app.include_router(admin_router)
    app.include_router(health_router)
