# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1.auth import router as auth_router
from app.modules.organizations import router as organizations_router
from app.modules.configuration import router as configuration_router
from app.modules.stock import router as stock_router
from app.modules.clients import router as clients_router
from app.modules.suppliers import router as suppliers_router
from app.modules.sales import router as sales_router
from app.modules.current_accounts import router as current_accounts_router
from app.modules.petty_cash import router as petty_cash_router
from app.modules.logistics import router as logistics_router
from app.modules.reports import router as reports_router
from app.modules.payment_methods import router as payment_methods_router
from app.modules.banking import router as banking_router
from app.modules.payments import router as payments_router
from app.modules.storage import router as storage_router

# Crear router principal de la API v1
api_router = APIRouter()

# (router, prefijo, tag, descripción)
MODULES = [
    (organizations_router, "/organizations", "Organizations", "Organizaciones y usuarios (root)"),
    (configuration_router, "/configuration", "Configuration", "Sucursales, marcas, modelos, colores y modo seguro"),
    (stock_router, "/stock", "Stock", "Motos en stock y cambios de estado"),
    (clients_router, "/clients", "Clients", "Clientes"),
    (suppliers_router, "/suppliers", "Suppliers", "Proveedores"),
    (sales_router, "/sales", "Sales", "Ventas y reservas"),
    (current_accounts_router, "/current-accounts", "Current Accounts", "Financiación en cuotas"),
    (petty_cash_router, "/petty-cash", "Petty Cash", "Caja chica"),
    (logistics_router, "/logistics", "Logistics", "Transferencias entre sucursales"),
    (reports_router, "/reports", "Reports", "Reportes JSON y PDF"),
    (payment_methods_router, "/payment-methods", "Payment Methods", "Métodos de pago y tarjetas por organización"),
    (banking_router, "/banking", "Banking", "Bancos, tarjetas por banco y promociones"),
    (payments_router, "/payments", "Payments", "MercadoPago"),
    (storage_router, "/storage", "Storage", "Archivos en S3"),
]

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

for module_router, prefix, tag, _ in MODULES:
    api_router.include_router(module_router, prefix=prefix, tags=[tag])


@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": "Apex Motos API v1",
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            **{tag.lower().replace(" ", "_"): f"/api/v1{prefix}" for _, prefix, tag, _ in MODULES}
        }
    }


@api_router.get("/modules")
async def list_modules():
    """Listado de módulos disponibles"""
    return {
        "success": True,
        "modules": [
            {"name": tag, "prefix": prefix, "description": description, "health": f"/api/v1{prefix}/health"}
            for _, prefix, tag, description in MODULES
        ]
    }
