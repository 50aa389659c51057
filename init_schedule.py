import os

from dotenv import load_dotenv

from physio.database import init_db, session_scope
from physio.models.generated import Services, Users
from physio.services.slots import WeeklyScheduleRepository


# ======================================================
# ENV
# ======================================================

load_dotenv()

ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
SAMPLE_SERVICE_NAME = os.getenv("SAMPLE_SERVICE_NAME", "Home physiotherapy session")
SAMPLE_SERVICE_PRICE = float(os.getenv("SAMPLE_SERVICE_PRICE", "250000"))


# ======================================================
# MAIN LOGIC
# ======================================================

def main():
    init_db()
    with session_scope() as db:
        # --- weekly schedule ---
        created = WeeklyScheduleRepository(db).seed_defaults()
        if created:
            print(f"[BOOTSTRAP] Weekly schedule seeded ({created} day(s))")
        else:
            print("[BOOTSTRAP] Weekly schedule already present, nothing to do")

        # --- sample service ---
        if not db.query(Services).first():
            db.add(Services(
                name=SAMPLE_SERVICE_NAME,
                price=SAMPLE_SERVICE_PRICE,
                duration_minutes=60,
                category="physiotherapy",
                is_active=1,
            ))
            print(f"[BOOTSTRAP] Sample service created: {SAMPLE_SERVICE_NAME}")

        # --- admin user ---
        if not db.query(Users).filter(Users.role == "admin").first():
            db.add(Users(name=ADMIN_NAME, email=ADMIN_EMAIL, role="admin", is_active=1))
            print(f"[BOOTSTRAP] Admin user created ({ADMIN_NAME})")


# ======================================================
# ENTRYPOINT
# ======================================================

if __name__ == "__main__":
    main()
