# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text,
    Numeric, Float, ForeignKey, UniqueConstraint, JSON,
    func
)
from sqlalchemy.orm import relationship
from datetime import datetime

from app.config.database import Base

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, default=datetime.now, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, default=datetime.now, server_default=func.current_timestamp(), onupdate=datetime.now)


def Money():
    """Columna monetaria (Decimal con dos decimales)"""
    return Numeric(12, 2)


# =====================================================
# ORGANIZACIONES (TENANTS)
# =====================================================

class Organization(Base, TimestampMixin):
    """Modelo de Organización/Tenant (concesionaria)"""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    logo = Column(Text)
    thumbnail = Column(Text)
    is_active = Column(Boolean, default=True)

    # Modo seguro (OTP para operaciones sensibles de caja chica)
    secure_mode_enabled = Column(Boolean, default=False, nullable=False)
    otp_secret = Column(String(64))
    otp_verified = Column(Boolean, default=False, nullable=False)

    # Relationships
    users = relationship("User", back_populates="organization")
    branches = relationship("Branch", back_populates="organization", order_by="Branch.order")
    mercadopago_oauth = relationship("MercadoPagoOAuth", back_populates="organization", uselist=False)


# =====================================================
# SUCURSALES
# =====================================================

class Branch(Base):
    """Modelo de Sucursal"""
    __tablename__ = "branches"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_branch_org_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    # Relationships
    organization = relationship("Organization", back_populates="branches")
    users = relationship("User", back_populates="branch")
    motorcycles = relationship("Motorcycle", back_populates="branch")


# =====================================================
# USUARIOS
# =====================================================

class User(Base):
    """Modelo de Usuario"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # NULLABLE para root (plataforma)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    role = Column(String(50), default='user', nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    # Relationships
    organization = relationship("Organization", back_populates="users")
    branch = relationship("Branch", back_populates="users")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# =====================================================
# CATÁLOGO: MARCAS, MODELOS, COLORES
# =====================================================

class Brand(Base):
    """Marca global (administrada por root)"""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    color = Column(String(20))

    models = relationship("Model", back_populates="brand", order_by="Model.name")


class Model(Base):
    """Modelo global de una marca"""
    __tablename__ = "models"
    __table_args__ = (
        UniqueConstraint("brand_id", "name", name="uq_model_brand_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    brand = relationship("Brand", back_populates="models")
    files = relationship("ModelFile", back_populates="model", cascade="all, delete-orphan")


class ModelFile(Base):
    """Archivo (imagen o ficha técnica) de un modelo guardado en S3"""
    __tablename__ = "model_files"

    id = Column(Integer, primary_key=True, index=True)
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)  # image | spec
    s3_key = Column(String(500), nullable=False)
    s3_key_small = Column(String(500))
    url = Column(Text)
    size_bytes = Column(Integer)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    model = relationship("Model", back_populates="files")


class OrganizationBrand(Base):
    """Asociación de una marca global con una organización"""
    __tablename__ = "organization_brands"
    __table_args__ = (
        UniqueConstraint("organization_id", "brand_id", name="uq_org_brand"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False)
    color = Column(String(20))
    order = Column(Integer, nullable=False, default=0)

    brand = relationship("Brand")


class OrganizationModelConfig(Base):
    """Visibilidad y orden de un modelo dentro de una organización"""
    __tablename__ = "organization_model_configs"
    __table_args__ = (
        UniqueConstraint("organization_id", "model_id", name="uq_org_model"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    model = relationship("Model")


class Color(Base):
    """Color configurado por organización"""
    __tablename__ = "colors"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_color_org_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, default="SOLIDO")
    color_one = Column(String(20), nullable=False)
    color_two = Column(String(20))
    order = Column(Integer, nullable=False, default=0)


# =====================================================
# PROVEEDORES Y CLIENTES
# =====================================================

class Supplier(Base, TimestampMixin):
    """Modelo de Proveedor"""
    __tablename__ = "suppliers"
    __table_args__ = (
        UniqueConstraint("organization_id", "tax_identification", name="uq_supplier_org_tax"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    # Identificación fiscal
    legal_name = Column(String(255), nullable=False)
    commercial_name = Column(String(255))
    tax_identification = Column(String(50), nullable=False)
    vat_condition = Column(String(100), nullable=False, default="Responsable Inscripto")
    voucher_type = Column(String(50), nullable=False, default="Factura A")
    gross_income = Column(String(100))
    local_tax_registration = Column(String(100))

    # Contacto
    contact_name = Column(String(255))
    contact_position = Column(String(255))
    landline_number = Column(String(50))
    mobile_number = Column(String(50))
    email = Column(String(255))
    website = Column(String(255))
    legal_address = Column(Text)
    commercial_address = Column(Text)
    delivery_address = Column(Text)

    # Datos bancarios y comerciales
    bank = Column(String(255))
    account_type_number = Column(String(100))
    cbu = Column(String(50))
    bank_alias = Column(String(100))
    swift_bic = Column(String(50))
    payment_currency = Column(String(3), nullable=False, default="ARS")
    payment_methods = Column(JSON, default=list)
    payment_term_days = Column(Integer)
    discounts_conditions = Column(Text)
    credit_limit = Column(Money())
    return_policy = Column(Text)

    # Logística
    shipping_methods = Column(Text)
    shipping_costs = Column(Text)
    delivery_times = Column(Text)
    transport_conditions = Column(Text)

    # Otros
    items_categories = Column(Text)
    certifications = Column(Text)
    commercial_references = Column(Text)
    status = Column(String(20), nullable=False, default="activo")
    notes_observations = Column(Text)


class Client(Base, TimestampMixin):
    """Modelo de Cliente"""
    __tablename__ = "clients"
    __table_args__ = (
        UniqueConstraint("organization_id", "tax_id", name="uq_client_org_tax"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default="Individual")
    first_name = Column(String(255))
    last_name = Column(String(255))
    company_name = Column(String(255))
    tax_id = Column(String(50), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    mobile = Column(String(50))
    address = Column(Text)
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text)
    vat_status = Column(String(100))

    current_accounts = relationship("CurrentAccount", back_populates="client")

    @property
    def display_name(self) -> str:
        if self.type == "LegalEntity":
            return self.company_name or ""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# =====================================================
# MOTOCICLETAS
# =====================================================

class Motorcycle(Base, TimestampMixin):
    """Modelo de Motocicleta (unidad física en stock)"""
    __tablename__ = "motorcycles"
    __table_args__ = (
        UniqueConstraint("organization_id", "chassis_number", name="uq_motorcycle_org_chassis"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False)
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False)
    color_id = Column(Integer, ForeignKey("colors.id"))
    branch_id = Column(Integer, ForeignKey("branches.id"))
    supplier_id = Column(Integer, ForeignKey("suppliers.id"))
    client_id = Column(Integer, ForeignKey("clients.id"))
    seller_id = Column(Integer, ForeignKey("users.id"))

    year = Column(Integer, nullable=False)
    displacement = Column(Integer)
    chassis_number = Column(String(100), nullable=False)
    engine_number = Column(String(100))
    mileage = Column(Integer, default=0)
    license_plate = Column(String(20))

    cost_price = Column(Money())
    retail_price = Column(Money(), nullable=False)
    wholesale_price = Column(Money())
    currency = Column(String(3), nullable=False, default="ARS")

    image_url = Column(Text)
    state = Column(String(20), nullable=False, default="STOCK", index=True)
    observations = Column(Text)
    sold_at = Column(DateTime)

    # Relationships
    brand = relationship("Brand")
    model = relationship("Model")
    color = relationship("Color")
    branch = relationship("Branch", back_populates="motorcycles")
    supplier = relationship("Supplier")
    client = relationship("Client")
    seller = relationship("User")
    reservations = relationship("Reservation", back_populates="motorcycle")
    current_account = relationship("CurrentAccount", back_populates="motorcycle", uselist=False)


# =====================================================
# RESERVAS
# =====================================================

class Reservation(Base):
    """Modelo de Reserva de motocicleta"""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    created_by_user_id = Column(Integer, ForeignKey("users.id"))
    amount = Column(Money(), nullable=False)
    currency = Column(String(3), nullable=False, default="ARS")
    expiration_date = Column(Date)
    payment_method = Column(String(100))
    notes = Column(Text)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    motorcycle = relationship("Motorcycle", back_populates="reservations")
    client = relationship("Client")


# =====================================================
# CUENTAS CORRIENTES
# =====================================================

class CurrentAccount(Base, TimestampMixin):
    """Financiación en cuotas de una motocicleta"""
    __tablename__ = "current_accounts"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False, unique=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)

    total_amount = Column(Money(), nullable=False)
    down_payment = Column(Money(), nullable=False, default=0)
    remaining_amount = Column(Money(), nullable=False)
    number_of_installments = Column(Integer, nullable=False)
    installment_amount = Column(Money(), nullable=False)
    payment_frequency = Column(String(20), nullable=False, default="MONTHLY")
    interest_rate = Column(Float, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="ARS")

    start_date = Column(Date, nullable=False)
    next_due_date = Column(Date)
    end_date = Column(Date)
    reminder_lead_time_days = Column(Integer, default=3)
    status = Column(String(20), nullable=False, default="ACTIVE", index=True)
    notes = Column(Text)

    motorcycle = relationship("Motorcycle", back_populates="current_account")
    client = relationship("Client", back_populates="current_accounts")
    payments = relationship("Payment", back_populates="current_account", order_by="Payment.id")


class Payment(Base):
    """Pago registrado (cuota, anticipo o cobro MercadoPago)"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    current_account_id = Column(Integer, ForeignKey("current_accounts.id"), index=True)
    amount_paid = Column(Money(), nullable=False)
    payment_date = Column(DateTime)
    payment_method = Column(String(100))
    transaction_reference = Column(String(255))
    notes = Column(Text)
    installment_number = Column(Integer)
    # None = vigente, "D" = anulado (debe), "H" = contra-asiento (haber)
    installment_version = Column(String(1))
    is_down_payment = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    current_account = relationship("CurrentAccount", back_populates="payments")


# =====================================================
# CAJA CHICA
# =====================================================

class PettyCashDeposit(Base):
    """Ingreso de fondos a caja chica"""
    __tablename__ = "petty_cash_deposits"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"))
    description = Column(String(255), nullable=False)
    amount = Column(Money(), nullable=False)
    date = Column(DateTime, nullable=False)
    reference = Column(String(100))
    status = Column(String(30), nullable=False, default="OPEN")
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    branch = relationship("Branch")
    withdrawals = relationship("PettyCashWithdrawal", back_populates="deposit", order_by="PettyCashWithdrawal.id")


class PettyCashWithdrawal(Base):
    """Retiro de fondos entregado a un usuario"""
    __tablename__ = "petty_cash_withdrawals"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    deposit_id = Column(Integer, ForeignKey("petty_cash_deposits.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    user_name = Column(String(255), nullable=False)
    amount_given = Column(Money(), nullable=False)
    amount_justified = Column(Money(), nullable=False, default=0)
    date = Column(DateTime, nullable=False)
    status = Column(String(30), nullable=False, default="PENDING_JUSTIFICATION")
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    deposit = relationship("PettyCashDeposit", back_populates="withdrawals")
    spends = relationship("PettyCashSpend", back_populates="withdrawal", order_by="PettyCashSpend.id")


class PettyCashSpend(Base):
    """Gasto justificado contra un retiro"""
    __tablename__ = "petty_cash_spends"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    withdrawal_id = Column(Integer, ForeignKey("petty_cash_withdrawals.id"), nullable=False, index=True)
    motive = Column(String(100), nullable=False)
    description = Column(String(255))
    amount = Column(Money(), nullable=False)
    date = Column(DateTime, nullable=False)
    ticket_number = Column(String(50))
    ticket_url = Column(Text)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())

    withdrawal = relationship("PettyCashWithdrawal", back_populates="spends")


# =====================================================
# LOGÍSTICA
# =====================================================

class LogisticProvider(Base):
    """Proveedor de logística (transportista)"""
    __tablename__ = "logistic_providers"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_logistic_provider_org_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    contact_name = Column(String(255))
    phone = Column(String(50))
    email = Column(String(255))
    notes = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())


class MotorcycleTransfer(Base):
    """Transferencia de una motocicleta entre sucursales"""
    __tablename__ = "motorcycle_transfers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    motorcycle_id = Column(Integer, ForeignKey("motorcycles.id"), nullable=False, index=True)
    from_branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    to_branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    logistic_provider_id = Column(Integer, ForeignKey("logistic_providers.id"))
    status = Column(String(20), nullable=False, default="REQUESTED", index=True)
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    confirmed_by = Column(Integer, ForeignKey("users.id"))
    requested_date = Column(DateTime, nullable=False, default=datetime.now)
    scheduled_pickup_date = Column(DateTime)
    actual_delivery_date = Column(DateTime)
    notes = Column(Text)

    motorcycle = relationship("Motorcycle")
    from_branch = relationship("Branch", foreign_keys=[from_branch_id])
    to_branch = relationship("Branch", foreign_keys=[to_branch_id])
    logistic_provider = relationship("LogisticProvider")


# =====================================================
# MERCADOPAGO
# =====================================================

class MercadoPagoOAuth(Base, TimestampMixin):
    """Credenciales OAuth de MercadoPago por organización"""
    __tablename__ = "mercadopago_oauth"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, unique=True)
    mercadopago_user_id = Column(String(50))
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text)
    public_key = Column(String(255))
    email = Column(String(255))
    scopes = Column(Text)
    expires_at = Column(DateTime)

    organization = relationship("Organization", back_populates="mercadopago_oauth")


class PaymentNotification(Base):
    """Notificación de pago mostrada en el punto de venta"""
    __tablename__ = "payment_notifications"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # payment | point
    external_id = Column(String(100), index=True)
    status = Column(String(30), nullable=False)
    amount = Column(Money())
    message = Column(String(500), nullable=False)
    payload = Column(JSON)
    is_read = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now, server_default=func.current_timestamp())


# =====================================================
# MEDIOS DE PAGO Y PROMOCIONES BANCARIAS
# =====================================================

class PaymentMethod(Base):
    """Método de pago global (efectivo, tarjeta, transferencia...)"""
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False, unique=True)
    description = Column(Text)
    icon_url = Column(String(255))


class OrganizationPaymentMethod(Base):
    """Método de pago habilitado en una organización"""
    __tablename__ = "organization_payment_methods"
    __table_args__ = (
        UniqueConstraint("organization_id", "method_id", name="uq_org_payment_method"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    method = relationship("PaymentMethod")


class PaymentCard(Base):
    """Tarjeta global (Visa, Mastercard, Naranja X...)"""
    __tablename__ = "payment_cards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    type = Column(String(20), nullable=False)  # credit | debit
    issuer = Column(String(255))
    logo_url = Column(String(255))


class OrganizationPaymentCard(Base):
    """Tarjeta aceptada por una organización"""
    __tablename__ = "organization_payment_cards"
    __table_args__ = (
        UniqueConstraint("organization_id", "card_id", name="uq_org_payment_card"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    card_id = Column(Integer, ForeignKey("payment_cards.id"), nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    card = relationship("PaymentCard")


class Bank(Base):
    """Banco emisor (catálogo global)"""
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    logo_url = Column(String(255))


class CardType(Base):
    """Tipo de tarjeta (catálogo global)"""
    __tablename__ = "card_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    type = Column(String(20), nullable=False)  # credit | debit
    logo_url = Column(String(255))


class BankCard(Base):
    """Tarjeta de un banco aceptada por la organización"""
    __tablename__ = "bank_cards"
    __table_args__ = (
        UniqueConstraint("organization_id", "bank_id", "card_type_id", name="uq_bank_card"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=False)
    card_type_id = Column(Integer, ForeignKey("card_types.id"), nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    bank = relationship("Bank")
    card_type = relationship("CardType")


class BankingPromotion(Base, TimestampMixin):
    """Descuento o recargo por medio de pago, con planes de cuotas opcionales"""
    __tablename__ = "banking_promotions"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    payment_method_id = Column(Integer, ForeignKey("payment_methods.id"), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id"))
    card_id = Column(Integer, ForeignKey("payment_cards.id"))
    bank_card_id = Column(Integer, ForeignKey("bank_cards.id"))
    discount_rate = Column(Float)
    surcharge_rate = Column(Float)
    min_amount = Column(Money())
    max_amount = Column(Money())
    active_days = Column(JSON)  # ["lunes", ...]; vacío = todos los días
    start_date = Column(Date)
    end_date = Column(Date)
    is_enabled = Column(Boolean, default=True, nullable=False)

    payment_method = relationship("PaymentMethod")
    bank = relationship("Bank")
    card = relationship("PaymentCard")
    bank_card = relationship("BankCard")
    installment_plans = relationship(
        "InstallmentPlan", back_populates="promotion",
        cascade="all, delete-orphan", order_by="InstallmentPlan.installments"
    )


class InstallmentPlan(Base):
    """Plan de cuotas de una promoción"""
    __tablename__ = "installment_plans"
    __table_args__ = (
        UniqueConstraint("banking_promotion_id", "installments", name="uq_promotion_installments"),
    )

    id = Column(Integer, primary_key=True, index=True)
    banking_promotion_id = Column(Integer, ForeignKey("banking_promotions.id"), nullable=False, index=True)
    installments = Column(Integer, nullable=False)
    interest_rate = Column(Float, nullable=False, default=0)
    is_enabled = Column(Boolean, default=True, nullable=False)

    promotion = relationship("BankingPromotion", back_populates="installment_plans")
