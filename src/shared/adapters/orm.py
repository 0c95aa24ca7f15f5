import logging
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

logger = logging.getLogger(__name__)

metadata = MetaData()

employees = Table(
    "employees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("organization_id", Integer, nullable=False, index=True),
    Column("email", String(255), nullable=False),
    Column("username", String(50), nullable=False),
    Column("name", String(100), nullable=False),
    Column("surname", String(100)),
    Column("job_title", String(100)),
    Column("department", String(100)),
    Column("location", String(100)),
    Column("avatar_url", String(500)),
    Column("role_type", String(32), nullable=False, default="employee"),
    Column("status", String(16), nullable=False, default="active"),
    Column("hire_date", Date),
    Column("password_hash", String(255)),
    Column("created_at", DateTime(timezone=True)),
    UniqueConstraint("organization_id", "email", name="uq_employees_org_email"),
)

surveys = Table(
    "surveys",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("organization_id", Integer, nullable=False, index=True),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("status", String(16), nullable=False, default="draft"),
    Column("is_anonymous", Boolean, nullable=False, default=False),
    Column("is_mandatory", Boolean, nullable=False, default=False),
    Column("start_date", DateTime(timezone=True)),
    Column("end_date", DateTime(timezone=True)),
    Column("total_recipients", Integer, nullable=False, default=0),
    Column("template_type", String(50)),
    Column("created_by", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)

survey_questions = Table(
    "survey_questions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("survey_id", Integer, ForeignKey("surveys.id"), nullable=False, index=True),
    Column("question_text", Text, nullable=False),
    Column("question_type", String(32), nullable=False),
    Column("is_required", Boolean, nullable=False, default=True),
    Column("options", JSON),
    Column("order", Integer, nullable=False),
    Column("branching_logic", JSON),
    UniqueConstraint("survey_id", "order", name="uq_survey_questions_order"),
)

survey_responses = Table(
    "survey_responses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("survey_id", Integer, ForeignKey("surveys.id"), nullable=False, index=True),
    Column("user_id", Integer),
    Column("started_at", DateTime(timezone=True)),
    Column("completed_at", DateTime(timezone=True), nullable=False),
    Column("time_to_complete", Integer),
)

survey_answers = Table(
    "survey_answers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("response_id", Integer, ForeignKey("survey_responses.id"), nullable=False, index=True),
    Column("question_id", Integer, ForeignKey("survey_questions.id"), nullable=False),
    Column("answer_value", JSON),
)


def create_tables(engine):
    logger.info("Creating HR platform tables")
    metadata.create_all(engine)
