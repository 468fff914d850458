"""Seed the sub-groups, the general administrator and optional demo members."""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from access_control.models import MembershipType, SubGroup, SubGroupCategory
from authentication.managers import UserManager

DEMO_PASSWORD = "demo-pass-123"

# Demo member per membership type, placed in the sub-group of its category.
DEMO_MEMBERS = {
    MembershipType.DEMOLAY_ADMIN: SubGroupCategory.DEMOLAY_MEETING,
    MembershipType.JOBS_DAUGHTERS_ADMIN: SubGroupCategory.JOBS_DAUGHTERS_MEETING,
    MembershipType.FRATERNA_ADMIN: SubGroupCategory.FRATERNA_MEETING,
    MembershipType.MASON: SubGroupCategory.MASONIC_SESSION,
    MembershipType.DEMOLAY_MEMBER: SubGroupCategory.DEMOLAY_MEETING,
    MembershipType.JOBS_DAUGHTERS_MEMBER: SubGroupCategory.JOBS_DAUGHTERS_MEETING,
    MembershipType.FRATERNA_MEMBER: SubGroupCategory.FRATERNA_MEETING,
}


def demo_email(membership_type: str) -> str:
    return f"{membership_type.lower()}@example.com"


class Command(BaseCommand):
    """Management command to seed the data a fresh installation needs."""

    help = (
        "Create the four sub-groups and the general administrator configured by "
        "SEED_ADMIN_*. Use --demo to add one member per membership type and "
        "--reset to remove previously seeded demo members first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--demo",
            action="store_true",
            help="Also create one demo member per membership type.",
        )
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete demo members created by --demo before seeding.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self._reset_demo_members()

        self.stdout.write("Seeding sub-groups and administrator...")
        subgroups = self._create_subgroups()
        admin = self._create_admin(subgroups)
        self.stdout.write(f"General administrator: {admin.email}")

        if options.get("demo"):
            created = self._create_demo_members(subgroups)
            self.stdout.write(f"Demo members created: {created}")

        self.stdout.write(self.style.SUCCESS("Seed completed."))

    def _reset_demo_members(self) -> None:
        User = get_user_model()
        emails = [demo_email(membership_type) for membership_type in DEMO_MEMBERS]
        deleted, _ = User.objects.filter(email__in=emails).delete()
        self.stdout.write(self.style.WARNING(f"Removed {deleted} demo rows."))

    @staticmethod
    def _create_subgroups() -> dict[str, SubGroup]:
        """Create the four sub-groups if missing and return a name->SubGroup map."""
        subgroups = {}
        for name in SubGroupCategory.values:
            subgroup, _ = SubGroup.objects.get_or_create(name=name)
            subgroups[name] = subgroup
        return subgroups

    @staticmethod
    def _create_admin(subgroups):
        """Create the general administrator unless the email already exists."""
        User = get_user_model()
        admin, _ = User.objects.get_or_create(
            email=settings.SEED_ADMIN_EMAIL,
            defaults={
                "name": settings.SEED_ADMIN_NAME,
                "membership_type": MembershipType.GENERAL_ADMIN,
                "subgroup": subgroups[SubGroupCategory.MASONIC_SESSION],
                "password_hash": UserManager.hash_password(settings.SEED_ADMIN_PASSWORD),
            },
        )
        return admin

    @staticmethod
    def _create_demo_members(subgroups) -> int:
        User = get_user_model()
        created_count = 0
        for membership_type, category in DEMO_MEMBERS.items():
            _, created = User.objects.get_or_create(
                email=demo_email(membership_type),
                defaults={
                    "name": f"Demo {membership_type.label}",
                    "membership_type": membership_type,
                    "subgroup": subgroups[category],
                    "password_hash": UserManager.hash_password(DEMO_PASSWORD),
                },
            )
            created_count += int(created)
        return created_count
