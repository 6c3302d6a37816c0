"""001 – Initial schema: reference data, sessions, attendance, leave, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("employment_status", ["active", "inactive"]),
    ("user_role", ["employee", "manager", "hr_admin", "system_admin"]),
    ("attendance_status", ["present", "half_day", "absent", "wfh", "on_break"]),
    ("holiday_type", ["public", "restricted", "optional"]),
    ("leave_status", ["pending", "approved", "rejected", "cancelled"]),
    ("half_day_type", ["first_half", "second_half"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. departments ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE departments (
            id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name         VARCHAR(150) NOT NULL UNIQUE,
            code         VARCHAR(20) UNIQUE,
            description  TEXT,
            is_active    BOOLEAN DEFAULT TRUE,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. designations ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE designations (
            id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name        VARCHAR(150) NOT NULL UNIQUE,
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 3. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_code        VARCHAR(20)  NOT NULL UNIQUE,
            first_name           VARCHAR(100) NOT NULL,
            last_name            VARCHAR(100) NOT NULL,
            display_name         VARCHAR(255),
            email                VARCHAR(255) NOT NULL UNIQUE,
            department_id        UUID REFERENCES departments(id),
            designation_id       UUID REFERENCES designations(id),
            reporting_manager_id UUID REFERENCES employees(id),
            employment_status    employment_status DEFAULT 'active',
            date_of_joining      DATE NOT NULL,
            profile_photo_url    TEXT,
            created_at           TIMESTAMPTZ DEFAULT NOW(),
            updated_at           TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_employees_department ON employees(department_id)")
    op.execute("CREATE INDEX idx_employees_manager    ON employees(reporting_manager_id)")

    # ── 4. user_sessions ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE user_sessions (
            id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id  UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            token_hash   VARCHAR(512) NOT NULL UNIQUE,
            ip_address   INET,
            user_agent   TEXT,
            expires_at   TIMESTAMPTZ NOT NULL,
            is_revoked   BOOLEAN DEFAULT FALSE,
            created_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_user_sessions_employee ON user_sessions(employee_id)")
    op.execute("CREATE INDEX idx_user_sessions_expires  ON user_sessions(expires_at)")

    # ── 5. role_assignments ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE role_assignments (
            id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id  UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            role         user_role NOT NULL,
            assigned_by  UUID REFERENCES employees(id),
            assigned_at  TIMESTAMPTZ DEFAULT NOW(),
            is_active    BOOLEAN DEFAULT TRUE
        )
    """)
    op.execute("CREATE INDEX idx_role_assignments_employee ON role_assignments(employee_id)")

    # ── 6. holidays ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE holidays (
            id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name         VARCHAR(200) NOT NULL,
            date         DATE NOT NULL,
            type         holiday_type NOT NULL DEFAULT 'public',
            description  TEXT,
            is_active    BOOLEAN DEFAULT TRUE,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_holiday_date_name UNIQUE (date, name)
        )
    """)
    op.execute("CREATE INDEX ix_holidays_date ON holidays(date)")

    # ── 7. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id          UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            date                 DATE NOT NULL,
            check_in_time        TIMESTAMPTZ,
            check_out_time       TIMESTAMPTZ,
            status               attendance_status NOT NULL DEFAULT 'present',
            working_hours        DOUBLE PRECISION,
            check_in_ip          INET,
            check_in_latitude    DOUBLE PRECISION,
            check_in_longitude   DOUBLE PRECISION,
            check_out_ip         INET,
            check_out_latitude   DOUBLE PRECISION,
            check_out_longitude  DOUBLE PRECISION,
            is_late              BOOLEAN DEFAULT FALSE,
            late_reason          TEXT,
            project              VARCHAR(200),
            remarks              TEXT,
            created_at           TIMESTAMPTZ DEFAULT NOW(),
            updated_at           TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_emp_date UNIQUE (employee_id, date)
        )
    """)
    op.execute("CREATE INDEX ix_attendance_records_date ON attendance_records(date)")

    # ── 8. leave_types ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_types (
            id                 UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            code               VARCHAR(10)  NOT NULL UNIQUE,
            name               VARCHAR(100) NOT NULL UNIQUE,
            description        TEXT,
            days_allowed       NUMERIC(5,1) DEFAULT 0,
            color              VARCHAR(20),
            is_paid            BOOLEAN DEFAULT TRUE,
            requires_approval  BOOLEAN DEFAULT TRUE,
            is_active          BOOLEAN DEFAULT TRUE,
            created_at         TIMESTAMPTZ DEFAULT NOW(),
            updated_at         TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 9. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id              UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id     UUID NOT NULL REFERENCES employees(id),
            leave_type_id   UUID NOT NULL REFERENCES leave_types(id),
            from_date       DATE NOT NULL,
            to_date         DATE NOT NULL,
            number_of_days  NUMERIC(5,1) NOT NULL,
            reason          TEXT NOT NULL,
            status          leave_status NOT NULL DEFAULT 'pending',
            is_half_day     BOOLEAN DEFAULT FALSE,
            half_day_type   half_day_type,
            contact_number  VARCHAR(20),
            admin_comments  TEXT,
            reviewed_by     UUID REFERENCES employees(id),
            reviewed_at     TIMESTAMPTZ,
            cancelled_at    TIMESTAMPTZ,
            applied_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_request_dates CHECK (from_date <= to_date),
            CONSTRAINT ck_leave_request_days  CHECK (number_of_days > 0)
        )
    """)
    op.execute("""
        CREATE INDEX ix_leave_requests_employee_status
            ON leave_requests(employee_id, status)
    """)
    op.execute("""
        CREATE INDEX idx_leave_req_dates
            ON leave_requests(from_date, to_date)
    """)

    # ── 10. audit_trail ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            actor_id     UUID REFERENCES employees(id),
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            ip_address   INET,
            user_agent   TEXT,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX ix_audit_trail_entity
            ON audit_trail(entity_type, entity_id)
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")

    # ── Seed data ─────────────────────────────────────────────────────────
    op.execute("""
        INSERT INTO leave_types (code, name, days_allowed, color) VALUES
            ('CL', 'Casual Leave', 12, '#3B82F6'),
            ('SL', 'Sick Leave',   10, '#EF4444'),
            ('EL', 'Earned Leave', 18, '#10B981')
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "leave_requests",
        "leave_types",
        "attendance_records",
        "holidays",
        "role_assignments",
        "user_sessions",
        "employees",
        "designations",
        "departments",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
