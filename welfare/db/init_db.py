from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from welfare.db.base import Base
from welfare.db.session import SessionLocal, engine
from welfare.models.programs import Application, Beneficiary, Donor, Payment, Project, Scheme
from welfare.models.security import Region, User
from welfare.scope import ApplicationStatus, RegionLevel, Role


def init_db(seed: bool = True) -> None:
    """
    Create tables and, optionally, seed a small demo hierarchy.

    Demo users (use the id as bearer token):
        1 super admin, 2 state admin, 3 district admin (Kozhikode),
        4 area admin (Feroke), 5 unit admin (Feroke Unit 1), 6 unit admin with no
        scope yet, 7 project coordinator, 8 beneficiary
    """

    Base.metadata.create_all(bind=engine)

    if not seed:
        return

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed_demo_data(db)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Region.id).limit(1)).first() is not None


def seed_demo_data(db: Session) -> None:
    # Regions
    kerala = Region(name="Kerala", code="KL", level=RegionLevel.STATE.value)
    db.add(kerala)
    db.flush()

    kozhikode = Region(name="Kozhikode", code="KL-KKD", level=RegionLevel.DISTRICT.value, parent_id=kerala.id)
    malappuram = Region(name="Malappuram", code="KL-MLP", level=RegionLevel.DISTRICT.value, parent_id=kerala.id)
    db.add_all([kozhikode, malappuram])
    db.flush()

    feroke = Region(name="Feroke", code="KKD-FRK", level=RegionLevel.AREA.value, parent_id=kozhikode.id)
    vadakara = Region(name="Vadakara", code="KKD-VDK", level=RegionLevel.AREA.value, parent_id=kozhikode.id)
    tirur = Region(name="Tirur", code="MLP-TIR", level=RegionLevel.AREA.value, parent_id=malappuram.id)
    db.add_all([feroke, vadakara, tirur])
    db.flush()

    feroke_u1 = Region(name="Feroke Unit 1", code="FRK-U1", level=RegionLevel.UNIT.value, parent_id=feroke.id)
    feroke_u2 = Region(name="Feroke Unit 2", code="FRK-U2", level=RegionLevel.UNIT.value, parent_id=feroke.id)
    tirur_u1 = Region(name="Tirur Unit 1", code="TIR-U1", level=RegionLevel.UNIT.value, parent_id=tirur.id)
    db.add_all([feroke_u1, feroke_u2, tirur_u1])
    db.flush()

    # Programs
    education = Project(code="EDU-2025", name="Education Support 2025", budget_total=5000000, all_regions=True)
    housing = Project(code="HSG-KKD", name="Housing Kozhikode", budget_total=2000000)
    housing.target_regions.append(kozhikode)
    db.add_all([education, housing])
    db.flush()

    scholarship = Scheme(code="SCH-SCHOL", name="Higher Education Scholarship", category="education", project_id=education.id, max_amount=50000, all_regions=True)
    roof = Scheme(code="SCH-ROOF", name="Roof Repair Grant", category="housing", project_id=housing.id, max_amount=150000)
    roof.target_regions.append(kozhikode)
    db.add_all([scholarship, roof])
    db.flush()

    # Users
    users = [
        User(name="Sara Super", phone="9000000001", email="super@example.org", role=Role.SUPER_ADMIN.value),
        User(name="Stella State", phone="9000000002", email="state@example.org", role=Role.STATE_ADMIN.value),
        User(name="Dev District", phone="9000000003", role=Role.DISTRICT_ADMIN.value, scope_level=RegionLevel.DISTRICT.value),
        User(name="Arun Area", phone="9000000004", role=Role.AREA_ADMIN.value, scope_level=RegionLevel.AREA.value),
        User(name="Usha Unit", phone="9000000005", role=Role.UNIT_ADMIN.value, scope_level=RegionLevel.UNIT.value),
        User(name="Nimmi New", phone="9000000006", role=Role.UNIT_ADMIN.value),
        User(name="Paul Project", phone="9000000007", role=Role.PROJECT_COORDINATOR.value),
        User(name="Bina Beneficiary", phone="9000000008", role=Role.BENEFICIARY.value),
    ]
    users[2].regions.append(kozhikode)
    users[3].regions.append(feroke)
    users[4].regions.append(feroke_u1)
    users[6].projects.append(housing)
    db.add_all(users)
    db.flush()

    # Beneficiaries
    bina = Beneficiary(
        name="Bina Beneficiary",
        phone="9000000008",
        user_id=users[7].id,
        is_verified=True,
        state_id=kerala.id,
        district_id=kozhikode.id,
        area_id=feroke.id,
        unit_id=feroke_u1.id,
    )
    ravi = Beneficiary(
        name="Ravi",
        phone="9000000101",
        state_id=kerala.id,
        district_id=kozhikode.id,
        area_id=vadakara.id,
    )
    meera = Beneficiary(
        name="Meera",
        phone="9000000102",
        state_id=kerala.id,
        district_id=malappuram.id,
        area_id=tirur.id,
        unit_id=tirur_u1.id,
    )
    db.add_all([bina, ravi, meera])
    db.flush()

    # Applications
    app1 = Application(
        application_number="APP-0001",
        beneficiary_id=bina.id,
        scheme_id=roof.id,
        project_id=housing.id,
        owner_id=bina.user_id,
        status=ApplicationStatus.PENDING.value,
        requested_amount=120000,
        state_id=bina.state_id,
        district_id=bina.district_id,
        area_id=bina.area_id,
        unit_id=bina.unit_id,
    )
    app2 = Application(
        application_number="APP-0002",
        beneficiary_id=ravi.id,
        scheme_id=scholarship.id,
        project_id=education.id,
        status=ApplicationStatus.UNDER_REVIEW.value,
        requested_amount=40000,
        state_id=ravi.state_id,
        district_id=ravi.district_id,
        area_id=ravi.area_id,
    )
    app3 = Application(
        application_number="APP-0003",
        beneficiary_id=meera.id,
        scheme_id=scholarship.id,
        project_id=education.id,
        status=ApplicationStatus.APPROVED.value,
        requested_amount=30000,
        approved_amount=30000,
        state_id=meera.state_id,
        district_id=meera.district_id,
        area_id=meera.area_id,
        unit_id=meera.unit_id,
    )
    db.add_all([app1, app2, app3])
    db.flush()

    db.add(
        Payment(
            payment_number="PAY-0001",
            application_id=app3.id,
            beneficiary_id=meera.id,
            project_id=education.id,
            scheme_id=scholarship.id,
            amount=30000,
            status="scheduled",
            due_date=datetime(2026, 1, 15),
            state_id=meera.state_id,
            district_id=meera.district_id,
            area_id=meera.area_id,
            unit_id=meera.unit_id,
        )
    )

    db.add_all(
        [
            Donor(name="Kozhikode Traders Association", donor_type="organization", total_donated=250000, state_id=kerala.id, district_id=kozhikode.id),
            Donor(name="Anonymous", donor_type="individual", total_donated=10000),
        ]
    )

    db.commit()
