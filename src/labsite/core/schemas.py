"""Field schemas for every record kind and for the site settings."""

from __future__ import annotations

from labsite.core.field_ops import FieldDef, FieldType
from labsite.core.records import JOB_TYPES, PROJECT_STATUSES, TEAM_IMAGE_POSITIONS, PublicationType

PUBLICATION_TYPES = [t.value for t in PublicationType]

PROJECTS_SCHEMA: dict[str, FieldDef] = {
    # Core
    "title": FieldDef(FieldType.STRING, "Project title", required=True),
    "description": FieldDef(FieldType.STRING, "Project description"),
    "category": FieldDef(FieldType.STRING_LIST, "Category labels"),
    "status": FieldDef(FieldType.STRING, "Project status", choices=PROJECT_STATUSES),
    "start_date": FieldDef(FieldType.STRING, "Start date (YYYY-MM-DD)"),
    "end_date": FieldDef(FieldType.STRING, "End date (YYYY-MM-DD)"),
    # Links
    "team": FieldDef(FieldType.STRING_LIST, "Team member names"),
    "topics": FieldDef(FieldType.STRING_LIST, "Research topic names"),
    "publications": FieldDef(FieldType.STRING_LIST, "Publication ids"),
    # Display
    "color": FieldDef(FieldType.COLOR, "Hex color or linear-gradient() for cards"),
    "image": FieldDef(FieldType.URL, "Header image URL"),
    "emoji_hexcodes": FieldDef(FieldType.STRING_LIST, "Emoji hexcodes shown on the card"),
    # Maintained by the store
    "topics_with_colors": FieldDef(FieldType.STRING_LIST, "Topic color snapshot", derived=True),
    "last_updated": FieldDef(FieldType.INT, "Last edit time (epoch millis)", derived=True),
}

PEOPLE_SCHEMA: dict[str, FieldDef] = {
    "name": FieldDef(FieldType.STRING, "Full name (must be unique)", required=True),
    "role": FieldDef(FieldType.STRING, "Role in the lab"),
    "bio": FieldDef(FieldType.STRING, "Short biography"),
    "color": FieldDef(FieldType.COLOR, "Accent color"),
    "projects": FieldDef(FieldType.STRING_LIST, "Project ids"),
    "publications": FieldDef(FieldType.STRING_LIST, "Publication ids"),
    "email": FieldDef(FieldType.STRING, "Contact email"),
    "github": FieldDef(FieldType.STRING, "GitHub username"),
    "cv_url": FieldDef(FieldType.URL, "CV link"),
    "image_url": FieldDef(FieldType.URL, "Portrait URL"),
}

PUBLICATIONS_SCHEMA: dict[str, FieldDef] = {
    "title": FieldDef(FieldType.STRING, "Publication title", required=True),
    "authors": FieldDef(FieldType.STRING_LIST, "Author names as printed"),
    "journal": FieldDef(FieldType.STRING, "Journal or venue"),
    "year": FieldDef(FieldType.INT, "Publication year", min_val=1900, max_val=2100),
    "type": FieldDef(FieldType.STRING, "Publication type", choices=PUBLICATION_TYPES),
    "citation": FieldDef(FieldType.STRING, "Formatted citation"),
    "abstract": FieldDef(FieldType.STRING, "Abstract"),
    "doi": FieldDef(FieldType.STRING, "DOI"),
    "url": FieldDef(FieldType.URL, "Link to the publication"),
    "keywords": FieldDef(FieldType.STRING_LIST, "Keywords"),
    "project_ids": FieldDef(FieldType.STRING_LIST, "Project ids"),
    "software_ids": FieldDef(FieldType.STRING_LIST, "Software ids"),
}

SOFTWARE_SCHEMA: dict[str, FieldDef] = {
    "name": FieldDef(FieldType.STRING, "Software name", required=True),
    "description": FieldDef(FieldType.STRING, "What it does"),
    "repo_url": FieldDef(FieldType.URL, "Repository URL"),
    "documentation_url": FieldDef(FieldType.URL, "Documentation URL"),
    "technologies": FieldDef(FieldType.STRING_LIST, "Languages and frameworks"),
    "developers": FieldDef(FieldType.STRING_LIST, "Developer names"),
    "license": FieldDef(FieldType.STRING, "License identifier"),
    "featured": FieldDef(FieldType.BOOL, "Highlight on the software page"),
    "project_ids": FieldDef(FieldType.STRING_LIST, "Project ids"),
    "publication_ids": FieldDef(FieldType.STRING_LIST, "Publication ids"),
}

JOBS_SCHEMA: dict[str, FieldDef] = {
    "title": FieldDef(FieldType.STRING, "Position title", required=True),
    "type": FieldDef(FieldType.STRING, "Position type", choices=JOB_TYPES),
    "description": FieldDef(FieldType.STRING, "Position description"),
    "requirements": FieldDef(FieldType.STRING_LIST, "Requirements"),
    "location": FieldDef(FieldType.STRING, "Location"),
    "deadline": FieldDef(FieldType.STRING, "Application deadline (YYYY-MM-DD)"),
    "apply_url": FieldDef(FieldType.URL, "Application link"),
    "project_id": FieldDef(FieldType.STRING, "Related project id"),
    "is_open": FieldDef(FieldType.BOOL, "Currently accepting applications"),
}

COLLABORATORS_SCHEMA: dict[str, FieldDef] = {
    "name": FieldDef(FieldType.STRING, "Institution or group name", required=True),
    "url": FieldDef(FieldType.URL, "Website"),
    "logo": FieldDef(FieldType.URL, "Logo image URL"),
    "description": FieldDef(FieldType.STRING, "Nature of the collaboration"),
}

FUNDING_SCHEMA: dict[str, FieldDef] = {
    "name": FieldDef(FieldType.STRING, "Funding body or program", required=True),
    "url": FieldDef(FieldType.URL, "Website"),
    "logo": FieldDef(FieldType.URL, "Logo image URL"),
    "grant_number": FieldDef(FieldType.STRING, "Grant number"),
    "amount": FieldDef(FieldType.STRING, "Amount, as displayed"),
    "duration": FieldDef(FieldType.STRING, "Funding period"),
}

NEWS_SCHEMA: dict[str, FieldDef] = {
    "title": FieldDef(FieldType.STRING, "Headline", required=True),
    "content": FieldDef(FieldType.STRING, "Body text"),
    "date": FieldDef(FieldType.STRING, "Date (YYYY-MM-DD)"),
    "author": FieldDef(FieldType.STRING, "Author name"),
    "tags": FieldDef(FieldType.STRING_LIST, "Tags"),
    "image": FieldDef(FieldType.URL, "Image URL"),
    "featured": FieldDef(FieldType.BOOL, "Highlight on the news page"),
}

SITE_SCHEMA: dict[str, FieldDef] = {
    "team_image": FieldDef(FieldType.URL, "Team photo shown on the people page", required=True),
    "team_image_position": FieldDef(FieldType.STRING, "CSS object position of the team photo", choices=TEAM_IMAGE_POSITIONS),
}

SCHEMAS: dict[str, dict[str, FieldDef]] = {
    "projects": PROJECTS_SCHEMA,
    "people": PEOPLE_SCHEMA,
    "publications": PUBLICATIONS_SCHEMA,
    "software": SOFTWARE_SCHEMA,
    "jobs": JOBS_SCHEMA,
    "collaborators": COLLABORATORS_SCHEMA,
    "funding": FUNDING_SCHEMA,
    "news": NEWS_SCHEMA,
}


def schema_for(key: str) -> dict[str, FieldDef]:
    """Schema for a collection storage key.

    Raises:
        KeyError: If there is no such collection
    """
    return SCHEMAS[key]
