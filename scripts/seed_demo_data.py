"""
Populate an empty database with default operators, reference inventory, a month of sample alerts
and a few incidents
"""
import asyncio
import random
import sys
from datetime import timedelta
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select, func

from socdash.db.database import AsyncSessionLocal, init_db
from socdash.db.crud import incident as incident_crud
from socdash.db.crud import inventory
from socdash.db.crud import user as user_crud
from socdash.db.models import Alert
from socdash.db.models.base import utcnow
from socdash.db.models.enums import AlertSeverity, AlertStatus, IncidentSeverity, IncidentStatus, UserRole
from loguru import logger

ALERT_TYPES = [
    'Brute Force Attack', 'SQL Injection', 'Cross-Site Scripting', 'Port Scan',
    'Malware Detection', 'Suspicious Network Traffic', 'Failed Login', 'Data Exfiltration',
    'Privilege Escalation', 'DNS Tunneling', 'Command Injection', 'File Integrity Violation'
]

LOCATIONS = [
    ("CN", "Beijing", 39.9042, 116.4074),
    ("RU", "Moscow", 55.7558, 37.6176),
    ("US", "New York", 40.7128, -74.0060),
    ("BR", "São Paulo", -23.5505, -46.6333),
    ("IN", "Mumbai", 19.0760, 72.8777),
    ("DE", "Berlin", 52.5200, 13.4050),
    ("FR", "Paris", 48.8566, 2.3522),
    ("KR", "Seoul", 37.5665, 126.9780),
]

DEFAULT_USERS = [
    ("admin", "admin@soc.local", UserRole.ADMINISTRATOR),
    ("analyst1", "analyst1@soc.local", UserRole.SOC_ANALYST),
    ("manager1", "manager1@soc.local", UserRole.SOC_MANAGER),
]

INCIDENT_TITLES = [
    'Coordinated Brute Force Campaign', 'Malware Outbreak on Workstations',
    'Suspicious Outbound Data Transfer', 'Web Application Attack Wave', 'Insider Privilege Abuse'
]

SAMPLE_ASSETS = [
    {"name": "Web Server 01", "ip_address": "192.168.1.10", "asset_type": "Server",
     "operating_system": "Ubuntu 20.04", "criticality": "Critical", "owner": "IT Team"},
    {"name": "Database Server", "ip_address": "192.168.1.20", "asset_type": "Server",
     "operating_system": "CentOS 8", "criticality": "Critical", "owner": "DBA Team"},
    {"name": "Employee Laptop", "ip_address": "192.168.2.15", "asset_type": "Endpoint",
     "operating_system": "Windows 11", "criticality": "Medium", "owner": "Workplace IT"},
    {"name": "Core Switch", "ip_address": "192.168.1.1", "asset_type": "Network Device",
     "operating_system": "Cisco IOS", "criticality": "High", "owner": "Network Team"},
    {"name": "Cloud Instance", "ip_address": "10.0.1.5", "asset_type": "Cloud Resource",
     "operating_system": "Amazon Linux", "criticality": "High", "owner": "DevOps Team"},
]

COMPLIANCE_FRAMEWORKS = [
    ("PCI DSS", "Payment Card Industry Data Security Standard", 12, 10, 2),
    ("HIPAA", "Health Insurance Portability and Accountability Act", 18, 15, 3),
    ("ISO 27001", "Information Security Management", 114, 98, 16),
    ("SOX", "Sarbanes-Oxley Act", 8, 7, 1),
]

PLAYBOOKS = [
    {
        "name": "Malware Detection Response",
        "description": "Standard response procedure for malware detection alerts",
        "incident_type": "Malware",
        "steps": [
            "Isolate affected system from network", "Collect forensic evidence", "Analyze malware sample",
            "Determine scope of infection", "Clean infected systems", "Update security controls",
            "Document lessons learned",
        ],
    },
    {
        "name": "Data Breach Response",
        "description": "Emergency response for data breach incidents",
        "incident_type": "Data Breach",
        "steps": [
            "Activate incident response team", "Contain the breach", "Assess data exposure",
            "Notify legal and compliance teams", "Prepare external notifications",
            "Implement remediation measures", "Conduct post-incident review",
        ],
    },
]


def sample_alert(rng: random.Random) -> Alert:
    alert_type = rng.choice(ALERT_TYPES)
    status = rng.choice(list(AlertStatus))
    country, city, lat, lng = rng.choice(LOCATIONS)
    source_ip = ".".join(str(rng.randint(1, 254)) for _ in range(4))
    destination_ip = f"192.168.{rng.randint(0, 254)}.{rng.randint(1, 254)}"
    created_at = utcnow() - timedelta(seconds=rng.uniform(0, 30 * 24 * 3600))
    return Alert(
        alert_type=alert_type,
        severity=rng.choice(list(AlertSeverity)),
        source_ip=source_ip,
        destination_ip=destination_ip,
        source_port=rng.randint(1024, 65535),
        destination_port=rng.randint(1, 65535),
        protocol=rng.choice(["TCP", "UDP", "ICMP"]),
        description=f"{alert_type} detected from {source_ip}",
        raw_event={
            "timestamp": created_at.isoformat(),
            "source": "Security Scanner",
            "details": f"{alert_type} detected from {source_ip} targeting {destination_ip}",
        },
        status=status,
        resolved_at=created_at + timedelta(hours=rng.randint(1, 48)) if status == AlertStatus.RESOLVED else None,
        created_at=created_at,
        country_code=country,
        city=city,
        latitude=lat,
        longitude=lng,
    )


async def seed(alert_count: int = 100, incident_count: int = 5, seed_value: int = 42):
    rng = random.Random(seed_value)
    await init_db()

    async with AsyncSessionLocal() as db:
        existing = (await db.execute(select(func.count(Alert.id)))).scalar_one()
        if existing:
            logger.warning(f"Database already holds {existing} alerts, skipping seed")
            return

        reporters = []
        for username, email, role in DEFAULT_USERS:
            user = await user_crud.get_user_by_username(db, username)
            reporters.append(user or await user_crud.create_user(db, username, email, role))
        logger.info(f"Default operators: {', '.join(u.username for u in reporters)}")

        for asset in SAMPLE_ASSETS:
            await inventory.create_asset(db, asset)
        for name, description, total, passed, failed in COMPLIANCE_FRAMEWORKS:
            await inventory.create_compliance_framework(db, {
                "name": name, "description": description,
                "total_controls": total, "passed_controls": passed, "failed_controls": failed,
            })
        for playbook in PLAYBOOKS:
            await inventory.create_playbook(db, playbook, created_by=reporters[0].id)
        logger.info(f"Seeded {len(SAMPLE_ASSETS)} assets, {len(COMPLIANCE_FRAMEWORKS)} frameworks "
                    f"and {len(PLAYBOOKS)} playbooks")

        db.add_all([sample_alert(rng) for _ in range(alert_count)])
        await db.commit()
        logger.info(f"Seeded {alert_count} alerts")

        alert_ids = list((await db.execute(select(Alert.id))).scalars().all())
        for title in INCIDENT_TITLES[:incident_count]:
            incident = await incident_crud.create_incident(
                db, {"title": title, "description": f"Investigation: {title}",
                     "severity": rng.choice(list(IncidentSeverity))},
                reporter_id=rng.choice(reporters).id
            )
            for alert_id in rng.sample(alert_ids, rng.randint(1, 10)):
                await incident_crud.attach_alert(db, incident.id, alert_id)
            target = rng.choice(list(IncidentStatus))
            if target != IncidentStatus.NEW:
                await incident_crud.transition_status(db, incident.id, target)
        logger.info(f"Seeded {incident_count} incidents")


if __name__ == "__main__":
    asyncio.run(seed())
