"""Database initialization script."""

import asyncio
import logging
from decimal import Decimal

from marketplace.database.mongodb import mongodb
from marketplace.models.product import Pricing, ProductBase
from marketplace.models.user import UserCreate
from marketplace.services.catalog_service import catalog_service
from marketplace.services.user_service import user_service
from marketplace.utils.logger import setup_logging

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


SAMPLE_USERS = [
    UserCreate(
        userId="buyer_001",
        companyName="Tashkent Textile Trading",
        companyType="distributor",
        contactPerson="Dilshod Karimov",
        email="dilshod@tashtextile.example.com",
        phone="+998901234567",
        country="Uzbekistan",
    ),
    UserCreate(
        userId="mfr_001",
        companyName="Fergana Cotton Mills",
        companyType="manufacturer",
        contactPerson="Nodira Yusupova",
        email="sales@ferganacotton.example.com",
        phone="+998712345678",
        country="Uzbekistan",
    ),
    UserCreate(
        userId="mfr_002",
        companyName="Samarkand Packaging Works",
        companyType="manufacturer",
        contactPerson="Jasur Tursunov",
        email="orders@samarkandpack.example.com",
        phone="+998662345678",
        country="Uzbekistan",
    ),
]

SAMPLE_PRODUCTS = [
    ProductBase(
        productId="prod_cotton_yarn",
        name="Combed cotton yarn Ne 30/1",
        description="Ring-spun combed cotton yarn for knitting.",
        manufacturerId="mfr_001",
        category="textiles_clothing",
        pricing=Pricing(basePrice=Decimal("10.00"), minimumOrderQuantity=10),
    ),
    ProductBase(
        productId="prod_denim_roll",
        name="Indigo denim fabric, 12 oz",
        description="150 cm wide denim sold per roll.",
        manufacturerId="mfr_001",
        category="textiles_clothing",
        pricing=Pricing(basePrice=Decimal("240.00")),
    ),
    ProductBase(
        productId="prod_carton_box",
        name="Corrugated carton box 60x40x40",
        description="Five-ply export carton.",
        manufacturerId="mfr_002",
        category="packaging",
        pricing=Pricing(basePrice=Decimal("1.25"), minimumOrderQuantity=500),
    ),
]


async def init_databases():
    """Create indexes and seed sample companies and catalog products."""
    try:
        logger.info("Initializing database...")

        # Connecting also creates the indexes
        await mongodb.connect()
        logger.info("Database connected successfully")

        for user in SAMPLE_USERS:
            try:
                await user_service.create_user(user)
                logger.info("Created company: %s", user.userId)
            except ValueError as e:
                logger.warning("Company %s already exists: %s", user.userId, e)

        for product in SAMPLE_PRODUCTS:
            await catalog_service.save_product(product)
            logger.info("Saved product: %s", product.productId)

        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error("Error initializing database: %s", e)
        raise

    finally:
        await mongodb.disconnect()


if __name__ == "__main__":
    asyncio.run(init_databases())
