"""SQLAlchemy table definitions for stored DMARC reports."""

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    MetaData,
    Table,
    Text,
)

from dmarc_ingest.models import (
    DKIMResultType,
    DispositionType,
    DMARCResultType,
    SPFResultType,
)

metadata = MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
})


def _enum_type(vocabulary, name):
    # Store the canonical strings (member values), not the member names
    return Enum(
        vocabulary,
        name=name,
        metadata=metadata,
        values_callable=lambda members: [member.value for member in members],
        create_constraint=True,
        validate_strings=True,
    )


disposition_type = _enum_type(DispositionType, "disposition_type")
dkim_result_type = _enum_type(DKIMResultType, "dkim_result_type")
dmarc_result_type = _enum_type(DMARCResultType, "dmarc_result_type")
spf_result_type = _enum_type(SPFResultType, "spf_result_type")

report = Table(
    "report",
    metadata,
    Column("report_id", Text, primary_key=True),
    Column("begin_date", DateTime(timezone=True), nullable=False),
    Column("end_date", DateTime(timezone=True), nullable=False),
    Column("domain", Text, nullable=False),
    Column("org_name", Text, nullable=False),
    Column("email", Text, nullable=False),
    Column("policy_adkim", Text, nullable=False, server_default=""),
    Column("policy_aspf", Text, nullable=False, server_default=""),
    Column("policy_p", Text, nullable=False),
    Column("policy_sp", Text, nullable=False, server_default=""),
    Column("policy_pct", Integer, nullable=False),
)

item = Table(
    "item",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("report_id", Text, ForeignKey("report.report_id"), nullable=False, index=True),
    Column("ip", Text, nullable=False),
    Column("count", Integer, nullable=False),
    Column("disposition", disposition_type, nullable=False),
    Column("dkim_domain", Text, nullable=False),
    Column("dkim_result", dkim_result_type, nullable=False),
    Column("policy_dkim", dmarc_result_type, nullable=False),
    Column("spf_domain", Text, nullable=False),
    Column("spf_result", spf_result_type, nullable=False),
    Column("policy_spf", dmarc_result_type, nullable=False),
    Column("reason", Text, nullable=False),
    Column("header_from", Text, nullable=False),
)
