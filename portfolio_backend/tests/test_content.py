import unittest

from portfolio_backend import contact
from portfolio_backend.content import (
    AWARDS,
    EDUCATION,
    EXPERIENCE,
    PROJECTS,
    RESEARCH,
    SKILLS,
    SPEAKING,
)
from portfolio_backend.db import InMemoryDbClient
from portfolio_backend.errors import NotFoundError, ValidationFailedError
from portfolio_backend.types import MessageStatus, ProjectCategory

SAMPLES = {
    "projects": (
        PROJECTS,
        {
            "title": "Packet Sniffer",
            "description": "Passive traffic analyser",
            "technologies": ["Python", "Scapy"],
            "category": "cybersecurity",
            "status": "completed",
        },
    ),
    "research": (
        RESEARCH,
        {
            "title": "Adversarial Robustness",
            "authors": ["A. Author", "B. Author"],
            "venue": "NeurIPS",
            "year": 2023,
            "description": "Robust training study",
            "status": "published",
        },
    ),
    "experience": (
        EXPERIENCE,
        {
            "company": "Acme",
            "position": "Engineer",
            "description": "Built things",
            "startDate": "2021-01",
            "current": True,
        },
    ),
    "education": (
        EDUCATION,
        {
            "institution": "State University",
            "degree": "BSc",
            "field": "Computer Science",
            "startDate": "2016-09",
            "endDate": "2020-06",
        },
    ),
    "awards": (
        AWARDS,
        {
            "title": "Best Paper",
            "organization": "IEEE",
            "year": 2022,
            "description": "Awarded for best paper",
            "category": "academic",
        },
    ),
    "speaking": (
        SPEAKING,
        {
            "title": "Securing ML",
            "event": "PyCon",
            "date": "2024-05-17",
            "location": "Pittsburgh",
            "description": "Talk on model security",
        },
    ),
    "skills": (
        SKILLS,
        {"name": "Python", "category": "programming", "level": 90},
    ),
}


class ContentCollectionTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_create_then_get_for_every_entity(self):
        for name, (collection, payload) in SAMPLES.items():
            with self.subTest(collection=name):
                created = collection.create(self.db, payload)
                self.assertTrue(created.id)
                self.assertIsNotNone(created.created_at)
                fetched = collection.get(self.db, created.id)
                self.assertEqual(fetched.id, created.id)
                self.assertEqual(fetched, created)

    def test_delete_missing_record_is_not_found_for_every_entity(self):
        for name, (collection, _) in SAMPLES.items():
            with self.subTest(collection=name):
                with self.assertRaises(NotFoundError):
                    collection.delete(self.db, "missing")
        with self.assertRaises(NotFoundError):
            contact.delete_message(self.db, "missing")

    def test_get_missing_record_is_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            PROJECTS.get(self.db, "missing")
        self.assertEqual(str(ctx.exception), "Project not found")

    def test_invalid_category_is_rejected_and_nothing_stored(self):
        payload = dict(SAMPLES["projects"][1], category="blockchain")
        with self.assertRaises(ValidationFailedError):
            PROJECTS.create(self.db, payload)
        self.assertEqual(PROJECTS.count(self.db), 0)

    def test_missing_required_field_is_rejected(self):
        payload = dict(SAMPLES["awards"][1])
        del payload["organization"]
        with self.assertRaises(ValidationFailedError):
            AWARDS.create(self.db, payload)

    def test_blank_required_text_is_rejected(self):
        payload = dict(SAMPLES["projects"][1], title="   ")
        with self.assertRaises(ValidationFailedError):
            PROJECTS.create(self.db, payload)

    def test_numeric_ranges_are_enforced(self):
        with self.assertRaises(ValidationFailedError):
            SKILLS.create(self.db, dict(SAMPLES["skills"][1], level=101))
        with self.assertRaises(ValidationFailedError):
            SKILLS.create(self.db, dict(SAMPLES["skills"][1], level=0))
        with self.assertRaises(ValidationFailedError):
            RESEARCH.create(self.db, dict(SAMPLES["research"][1], year=1999))
        with self.assertRaises(ValidationFailedError):
            AWARDS.create(self.db, dict(SAMPLES["awards"][1], year=3000))

    def test_defaults_are_applied(self):
        project = PROJECTS.create(
            self.db,
            {
                "title": "CLI",
                "description": "A tool",
                "category": "tool",
            },
        )
        self.assertFalse(project.featured)
        self.assertEqual(project.status.value, "completed")
        self.assertEqual(project.technologies, [])

    def test_text_is_trimmed(self):
        project = PROJECTS.create(
            self.db, dict(SAMPLES["projects"][1], title="  Sniffer  ")
        )
        self.assertEqual(project.title, "Sniffer")

    def test_update_replaces_fields_and_keeps_created_at(self):
        created = PROJECTS.create(self.db, SAMPLES["projects"][1])
        payload = dict(SAMPLES["projects"][1], title="Renamed", status="archived")
        updated = PROJECTS.update(self.db, created.id, payload)
        self.assertEqual(updated.title, "Renamed")
        self.assertEqual(updated.status.value, "archived")
        self.assertEqual(updated.created_at, created.created_at)
        self.assertGreaterEqual(updated.updated_at, created.updated_at)

    def test_update_revalidates(self):
        created = PROJECTS.create(self.db, SAMPLES["projects"][1])
        with self.assertRaises(ValidationFailedError):
            PROJECTS.update(
                self.db, created.id, dict(SAMPLES["projects"][1], status="shipped")
            )
        self.assertEqual(PROJECTS.get(self.db, created.id).status.value, "completed")

    def test_update_missing_record_is_not_found(self):
        with self.assertRaises(NotFoundError):
            PROJECTS.update(self.db, "missing", SAMPLES["projects"][1])

    def test_delete_removes_record(self):
        created = SKILLS.create(self.db, SAMPLES["skills"][1])
        self.assertTrue(SKILLS.delete(self.db, created.id))
        with self.assertRaises(NotFoundError):
            SKILLS.get(self.db, created.id)

    def test_featured_filter(self):
        base = SAMPLES["projects"][1]
        PROJECTS.create(self.db, dict(base, title="A", featured=True))
        PROJECTS.create(self.db, dict(base, title="B", featured=False))
        PROJECTS.create(self.db, dict(base, title="C", featured=True))

        featured = PROJECTS.list(self.db, featured=True)
        self.assertEqual(sorted(p.title for p in featured), ["A", "C"])
        self.assertTrue(all(p.featured for p in featured))
        self.assertEqual(len(PROJECTS.list(self.db)), 3)

    def test_category_filter_accepts_enum_values(self):
        base = SAMPLES["projects"][1]
        PROJECTS.create(self.db, dict(base, category="ai"))
        PROJECTS.create(self.db, dict(base, category="web"))
        results = PROJECTS.list(self.db, category=ProjectCategory.AI)
        self.assertEqual([p.category for p in results], [ProjectCategory.AI])

    def test_skills_filtered_by_category_ordered_by_level(self):
        for name, category, level in [
            ("PyTorch", "ai", 70),
            ("Go", "programming", 95),
            ("LLMs", "ai", 85),
            ("Prompting", "ai", 40),
        ]:
            SKILLS.create(
                self.db, {"name": name, "category": category, "level": level}
            )
        skills = SKILLS.list(self.db, category="ai")
        self.assertEqual([s.name for s in skills], ["LLMs", "PyTorch", "Prompting"])
        self.assertEqual([s.level for s in skills], [85, 70, 40])

    def test_research_ordered_by_year_and_capped(self):
        base = SAMPLES["research"][1]
        for year in (2019, 2024, 2021):
            RESEARCH.create(self.db, dict(base, title=f"Paper {year}", year=year))
        self.assertEqual(
            [r.year for r in RESEARCH.list(self.db)], [2024, 2021, 2019]
        )
        self.assertEqual(len(RESEARCH.list(self.db, limit=2)), 2)

    def test_research_filtered_by_venue(self):
        base = SAMPLES["research"][1]
        RESEARCH.create(self.db, dict(base, title="At NeurIPS"))
        RESEARCH.create(self.db, dict(base, title="At USENIX", venue="USENIX Security"))
        results = RESEARCH.list(self.db, venue="USENIX Security")
        self.assertEqual([r.title for r in results], ["At USENIX"])

    def test_speaking_ordered_by_date_and_capped(self):
        base = SAMPLES["speaking"][1]
        for day in range(1, 13):
            SPEAKING.create(self.db, dict(base, date=f"2024-03-{day:02d}"))
        talks = SPEAKING.list(self.db)
        self.assertEqual(len(talks), 10)
        self.assertEqual(talks[0].date, "2024-03-12")
        self.assertEqual(talks[-1].date, "2024-03-03")

    def test_project_list_has_default_cap(self):
        base = SAMPLES["projects"][1]
        for i in range(12):
            PROJECTS.create(self.db, dict(base, title=f"Project {i}"))
        self.assertEqual(len(PROJECTS.list(self.db)), 10)
        self.assertEqual(len(PROJECTS.list(self.db, limit=12)), 12)

    def test_experience_ordered_by_start_date(self):
        base = SAMPLES["experience"][1]
        for start in ("2018-03", "2022-07", "2020-01"):
            EXPERIENCE.create(self.db, dict(base, startDate=start))
        self.assertEqual(
            [e.start_date for e in EXPERIENCE.list(self.db)],
            ["2022-07", "2020-01", "2018-03"],
        )

    def test_unknown_filter_is_rejected(self):
        with self.assertRaises(ValidationFailedError):
            EXPERIENCE.list(self.db, featured=True)

    def test_non_positive_limit_is_rejected(self):
        with self.assertRaises(ValidationFailedError):
            PROJECTS.list(self.db, limit=0)


class ContactMessageTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.payload = {
            "name": "Jordan",
            "email": "jordan@example.com",
            "subject": "Hello",
            "message": "Nice portfolio",
        }

    def test_send_message_always_starts_as_new(self):
        message = contact.send_message(self.db, dict(self.payload, status="replied"))
        self.assertEqual(message.status, MessageStatus.NEW)

    def test_send_message_requires_valid_email(self):
        with self.assertRaises(ValidationFailedError):
            contact.send_message(self.db, dict(self.payload, email="not-an-email"))

    def test_update_status(self):
        message = contact.send_message(self.db, self.payload)
        updated = contact.update_status(self.db, message.id, "read")
        self.assertEqual(updated.status, MessageStatus.READ)
        self.assertEqual(updated.subject, "Hello")

    def test_update_status_rejects_unknown_status(self):
        message = contact.send_message(self.db, self.payload)
        with self.assertRaises(ValidationFailedError):
            contact.update_status(self.db, message.id, "spam")

    def test_update_status_of_missing_message(self):
        with self.assertRaises(NotFoundError):
            contact.update_status(self.db, "missing", "read")

    def test_list_filters_by_status(self):
        first = contact.send_message(self.db, self.payload)
        contact.send_message(self.db, self.payload)
        contact.update_status(self.db, first.id, "archived")
        archived = contact.list_messages(self.db, status="archived")
        self.assertEqual([m.id for m in archived], [first.id])
        self.assertEqual(len(contact.list_messages(self.db)), 2)


if __name__ == "__main__":
    unittest.main()
