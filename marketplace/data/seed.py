# marketplace/data/seed.py
from decimal import Decimal

from marketplace.data.database import SessionLocal, init_db
from marketplace.data.models import ProductModel, StoreModel, UserModel
from marketplace.services.auth_service import hash_password
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    ("Ceramic Mug", "Hand-glazed 350ml mug", Decimal("14.50"), 40, "kitchen"),
    ("Linen Apron", "Natural linen, one size", Decimal("29.00"), 15, "kitchen"),
    ("Oak Cutting Board", "End-grain oak, 30x20cm", Decimal("45.00"), 8, "kitchen"),
    ("Beeswax Candle", "Pure beeswax, 20h burn", Decimal("9.90"), 60, "home"),
    ("Wool Throw", "Merino blend, 130x170cm", Decimal("89.00"), 5, "home"),
]


def seed():
    init_db()
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            logger.info("Database already has data, skipping seed")
            return

        seller = UserModel(
            email="seller@marketplace.dev",
            password_hash=hash_password("seller123"),
            full_name="Demo Seller",
            role="seller",
        )
        customer = UserModel(
            email="customer@marketplace.dev",
            password_hash=hash_password("customer123"),
            full_name="Demo Customer",
            role="customer",
        )
        db.add_all([seller, customer])
        db.flush()

        store = StoreModel(seller_id=seller.id, name="Demo Workshop", description="Handmade goods")
        db.add(store)
        db.flush()

        for name, description, price, stock, category in DEMO_PRODUCTS:
            db.add(
                ProductModel(
                    store_id=store.id,
                    name=name,
                    description=description,
                    price=price,
                    stock_quantity=stock,
                    category=category,
                )
            )

        db.commit()
        logger.info(f"Seeded store {store.id} with {len(DEMO_PRODUCTS)} products")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
