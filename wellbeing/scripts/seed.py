"""
Seed demo data: three users, one group, two posts and an upcoming event.

Run with `python -m wellbeing.scripts.seed`. Users are reused when they already
exist; the group and its content are only created once.
"""
import logging
from datetime import datetime, timedelta

from wellbeing.database import Base, SessionLocal, engine
from wellbeing.models import audit as audit_models  # noqa: F401
from wellbeing.models.domain import Group, Membership, User
from wellbeing.models.enums import MemberRole, MembershipStatus, NotificationLevel
from wellbeing.services import security
from wellbeing.services.events import EventService
from wellbeing.services.membership import MembershipStateMachine
from wellbeing.services.posts import PostService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PASSWORD = "Password123!"
GROUP_NAME = "Mindfulness & Wellbeing"

DEMO_USERS = [
    {
        "email": "alice@example.com",
        "first_name": "Alice",
        "last_name": "Anderson",
        "display_name": "Alice A.",
        "bio": "Mental health advocate and facilitator",
        "marketing_consent": False,
        "notification_preference": NotificationLevel.MINIMAL,
    },
    {
        "email": "bob@example.com",
        "first_name": "Bob",
        "last_name": "Brown",
        "display_name": "Bob B.",
        "bio": "Looking for supportive community",
        "marketing_consent": False,
        "notification_preference": NotificationLevel.MINIMAL,
    },
    {
        "email": "carol@example.com",
        "first_name": "Carol",
        "last_name": "Chen",
        "display_name": "Carol C.",
        "bio": "Mindfulness practitioner",
        "marketing_consent": True,
        "notification_preference": NotificationLevel.NORMAL,
    },
]


def seed_users(db):
    """Create the demo users that do not exist yet."""
    password_hash = security.get_password_hash(PASSWORD)
    users = []
    created = 0
    for fields in DEMO_USERS:
        user = db.query(User).filter(User.email == fields["email"]).first()
        if not user:
            user = User(
                password_hash=password_hash,
                consent_given=True,
                consent_date=datetime.utcnow(),
                data_processing_consent=True,
                is_verified=True,
                **fields
            )
            db.add(user)
            created += 1
        users.append(user)
    db.commit()
    logger.info("Users seeded: %d created, %d existing", created, len(users) - created)
    return users


def seed_group(db, alice, members):
    """Create the demo group with Alice facilitating and the others as members."""
    existing = db.query(Group).filter(Group.name == GROUP_NAME).first()
    if existing:
        logger.info("Group %r already exists, skipping content", GROUP_NAME)
        return None

    group = MembershipStateMachine(db).create_group(
        alice.id,
        GROUP_NAME,
        10,
        description="A safe space for sharing experiences and practicing mindfulness together",
        purpose="Support mental health through community and mindfulness practices",
        is_private=True,
        require_approval=True
    )
    for user in members:
        db.add(Membership(
            user_id=user.id,
            group_id=group.id,
            role=MemberRole.MEMBER,
            status=MembershipStatus.ACTIVE,
            invited_by=alice.id,
            joined_at=datetime.utcnow()
        ))
    db.commit()
    logger.info("Created group %s with %d members", group.id, len(members) + 1)
    return group


def seed_content(db, group, alice, bob):
    posts = PostService(db)
    posts.create_post(
        group.id, alice.id,
        "Welcome to our mindfulness group! Feel free to share your thoughts and experiences."
    )
    posts.create_post(
        group.id, bob.id,
        "Thank you for creating this space. Looking forward to connecting with everyone."
    )

    start = (datetime.utcnow() + timedelta(days=7)).replace(hour=18, minute=0, second=0, microsecond=0)
    EventService(db).create_event(group.id, alice.id, {
        "title": "Weekly Mindfulness Session",
        "description": "Join us for guided meditation and reflection",
        "location": "Community Center",
        "location_details": "Room 101",
        "start_time": start,
        "end_time": start + timedelta(minutes=90),
        "max_participants": 8,
        "is_online": False,
    })
    logger.info("Created demo posts and event")


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        alice, bob, carol = seed_users(db)
        group = seed_group(db, alice, [bob, carol])
        if group:
            seed_content(db, group, alice, bob)
    finally:
        db.close()

    logger.info("Seeding complete. Log in as any of %s with password %s",
                ", ".join(u["email"] for u in DEMO_USERS), PASSWORD)


if __name__ == "__main__":
    main()
