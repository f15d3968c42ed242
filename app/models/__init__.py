# app/models/__init__.py
from app.models.user_models import User
from app.models.billing_models.client_models import Client
from app.models.billing_models.order_models import Order, OrderItem
from app.models.inventory_models import Product, ProductAuditSnapshot
