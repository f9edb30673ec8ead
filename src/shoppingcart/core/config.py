import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass
class DatabaseConfig:
    """Database configuration for stored carts"""
    url: str
    table: str = "shopping_cart"
    connection: Optional[str] = None  # Overrides url for the cart table only
    echo: bool = False  # Log SQL queries

    @property
    def connection_url(self) -> str:
        return self.connection or self.url


@dataclass
class FormatConfig:
    """Number formatting rules for display values"""
    decimals: int = 2
    decimal_point: str = "."
    thousands_separator: str = ""


@dataclass
class CartConfig:
    """Per-deployment cart settings"""
    tax_rate: float = 21.0  # Percent
    database: DatabaseConfig = field(
        default_factory=lambda: DatabaseConfig(url="sqlite:///shopping_cart.db")
    )
    format: FormatConfig = field(default_factory=FormatConfig)


@dataclass
class AppConfig:
    """Application configuration"""
    secret_key: str = "change-me-in-production"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"


class Config:
    def __init__(self):
        self.environment = os.getenv("ENVIRONMENT", "development")

        # Cart configuration
        self.cart = CartConfig(
            tax_rate=float(os.getenv("CART_TAX_RATE", "21")),
            database=DatabaseConfig(
                url=os.getenv("DATABASE_URL", "sqlite:///shopping_cart.db"),
                table=os.getenv("CART_DATABASE_TABLE", "shopping_cart"),
                connection=os.getenv("CART_DATABASE_CONNECTION") or None,
                echo=os.getenv("DB_ECHO", "false").lower() == "true"
            ),
            format=FormatConfig(
                decimals=int(os.getenv("CART_FORMAT_DECIMALS", "2")),
                decimal_point=os.getenv("CART_FORMAT_DECIMAL_POINT", "."),
                thousands_separator=os.getenv("CART_FORMAT_THOUSANDS_SEPARATOR", "")
            )
        )

        # App configuration
        self.app = AppConfig(
            secret_key=os.getenv("SECRET_KEY", "change-me-in-production"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            environment=self.environment,
            log_level=os.getenv("LOG_LEVEL", "INFO")
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> None:
        """Validate critical configuration"""
        if self.is_production and self.app.secret_key == "change-me-in-production":
            raise ValueError("SECRET_KEY must be set in production")

        if not self.cart.database.connection_url:
            raise ValueError("DATABASE_URL is required")


config = Config()
