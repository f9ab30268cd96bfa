from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.models.activity import Activity
from app.models.business import Business
from app.models.category import Category, SubCategory
from app.models.review import Review
from app.models.user import ROLE_ADMIN, ROLE_BUSINESS_OWNER, ROLE_USER, User
from app.services.ratings import recalculate_business_rating
from app.services.slugs import slugify


CATEGORIES = [
    ("Restaurants & Dining", "utensils", "Food and dining establishments", ["Pizza", "Sushi", "Cafes"]),
    ("Professional Services", "briefcase", "Professional and business services", ["Legal", "Accounting"]),
    ("Retail & Shopping", "shopping-bag", "Retail stores and shopping", ["Books", "Clothing"]),
    ("Health & Wellness", "heart", "Health and wellness services", ["Fitness", "Dental"]),
    ("Home Services", "home", "Home improvement and services", ["Plumbing", "Cleaning"]),
    ("Auto Services", "car", "Automotive services", ["Repair"]),
    ("Beauty & Spa", "spa", "Beauty and spa services", ["Hair", "Massage"]),
    ("Education", "graduation-cap", "Educational services", ["Tutoring"]),
]


def seed_db(db: Session) -> None:
    """Seed the database with sample data."""

    # Clear existing data (optional - comment out if you want to preserve data)
    db.query(Activity).delete()
    db.query(Review).delete()
    db.query(Business).delete()
    db.query(SubCategory).delete()
    db.query(Category).delete()
    db.query(User).delete()
    db.commit()

    # Users (external_auth_uid matches the identity provider's subject)
    admin = User(
        external_auth_uid="00000000-0000-0000-0000-000000000001",
        external_auth_provider="email",
        email="admin@citylocal101.com",
        name="Admin User",
        role=ROLE_ADMIN,
    )
    owner = User(
        external_auth_uid="11111111-1111-1111-1111-111111111111",
        external_auth_provider="email",
        email="maria@example.com",
        name="Maria Rossi",
        role=ROLE_BUSINESS_OWNER,
    )
    alice = User(
        external_auth_uid="22222222-2222-2222-2222-222222222222",
        external_auth_provider="google",
        email="alice@example.com",
        name="Alice",
        role=ROLE_USER,
    )
    bob = User(
        external_auth_uid="33333333-3333-3333-3333-333333333333",
        external_auth_provider="email",
        email="bob@example.com",
        name="Bob",
        role=ROLE_USER,
    )
    db.add_all([admin, owner, alice, bob])
    db.commit()

    # Categories and subcategories
    categories: dict[str, Category] = {}
    subcategories: dict[str, SubCategory] = {}
    for sort_order, (name, icon, description, subs) in enumerate(CATEGORIES):
        category = Category(name=name, slug=slugify(name), icon=icon, description=description, sort_order=sort_order)
        db.add(category)
        db.flush()
        categories[name] = category
        for sub_order, sub_name in enumerate(subs):
            subcategory = SubCategory(
                name=sub_name,
                slug=slugify(sub_name),
                category_id=category.id,
                sort_order=sub_order,
            )
            db.add(subcategory)
            subcategories[sub_name] = subcategory
    db.commit()

    now = datetime.now(timezone.utc)
    dining = categories["Restaurants & Dining"]

    # Businesses in each moderation state
    pizza = Business(
        name="Downtown Pizza Co.",
        slug="downtown-pizza-co",
        description="Authentic Italian pizza with fresh ingredients and traditional recipes. Family-owned since 1995.",
        category_id=dining.id,
        subcategory_id=subcategories["Pizza"].id,
        owner_id=owner.id,
        address="123 Main Street",
        city="New York",
        state="NY",
        zip_code="10001",
        phone="(555) 123-4567",
        email="info@downtownpizza.com",
        website="https://downtownpizza.com",
        tags=["pizza", "italian", "family"],
        is_active=True,
        is_verified=True,
        is_featured=True,
        approved_at=now,
    )
    sushi = Business(
        name="Sushi Palace",
        slug="sushi-palace",
        description="Premium sushi and Japanese cuisine prepared by experienced chefs. Fresh seafood daily.",
        category_id=dining.id,
        subcategory_id=subcategories["Sushi"].id,
        address="456 Ocean Drive",
        city="Miami",
        state="FL",
        zip_code="33139",
        phone="(555) 987-6543",
        is_active=True,
        is_verified=True,
        approved_at=now,
    )
    cafe = Business(
        name="Cafe Mocha",
        slug="cafe-mocha",
        description="Cozy coffee shop with artisan coffee, pastries, and light lunch options.",
        category_id=dining.id,
        subcategory_id=subcategories["Cafes"].id,
        owner_id=owner.id,
        address="321 Coffee Lane",
        city="Seattle",
        state="WA",
        zip_code="98101",
        phone="(555) 234-8901",
        is_active=False,
    )
    gym = Business(
        name="Iron Temple Fitness",
        slug="iron-temple-fitness",
        description="Strength and conditioning gym with personal training.",
        category_id=categories["Health & Wellness"].id,
        subcategory_id=subcategories["Fitness"].id,
        owner_id=owner.id,
        address="9 Lift Street",
        city="Chicago",
        state="IL",
        zip_code="60601",
        phone="(555) 456-7890",
        is_active=False,
        rejection_reason="Please add opening hours and a working phone number.",
        rejected_at=now,
    )
    books = Business(
        name="Corner Books",
        slug="corner-books",
        description="Independent bookstore with a reading nook.",
        category_id=categories["Retail & Shopping"].id,
        subcategory_id=subcategories["Books"].id,
        address="77 Page Avenue",
        city="New York",
        state="NY",
        zip_code="10013",
        phone="(555) 345-6789",
        is_active=True,
        is_verified=True,
        is_public=False,
        approved_at=now,
    )
    db.add_all([pizza, sushi, cafe, gym, books])
    db.commit()

    # Reviews; aggregates are derived, never written by hand
    reviews = [
        Review(business_id=pizza.id, user_id=alice.id, rating=5, title="Best slice", comment="Crispy crust, great sauce."),
        Review(business_id=pizza.id, user_id=bob.id, rating=4, title="Solid", comment="Good pizza, slow service."),
        Review(business_id=sushi.id, user_id=alice.id, rating=4, title="Fresh fish", comment="Nigiri was excellent."),
        Review(
            business_id=sushi.id,
            user_id=bob.id,
            rating=1,
            title="Spam",
            comment="Hidden by moderation.",
            is_approved=False,
        ),
    ]
    db.add_all(reviews)
    for business in (pizza, sushi):
        recalculate_business_rating(db, business.id)
    db.commit()

    print("Database seeded successfully!")
    print(
        f"Created: 4 users, {len(categories)} categories, {len(subcategories)} subcategories, "
        f"5 businesses, {len(reviews)} reviews"
    )
