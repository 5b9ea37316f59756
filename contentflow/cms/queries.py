"""GROQ queries used by the pipeline.

Taxonomy and people references are expanded inline (``->``) so the fetcher
receives titles and names, not bare ids.
"""

from __future__ import annotations

from contentflow.models import ContentType

TAXONOMY_FIELDS = """
  sectors[]-> { _id, title },
  regions[]-> { _id, title },
  tags[]-> { _id, title }"""

BASE_FIELDS = """
  _id,
  _type,
  title,
  slug,
  dek,
  body,
  publishedAt"""

ARTICLE_BY_SLUG = f"""*[_type == "article" && slug.current == $slug][0] {{{BASE_FIELDS},{TAXONOMY_FIELDS}
}}"""

INTERVIEW_BY_SLUG = f"""*[_type == "interview" && slug.current == $slug][0] {{{BASE_FIELDS},
  interviewee-> {{
    _id,
    name,
    role,
    organization-> {{ _id, name }},
    bio
  }},
  roleAtTime,
  organizationAtTime-> {{ _id, name }},{TAXONOMY_FIELDS}
}}"""

PUBLICATION_BY_SLUG = f"""*[_type == "publication" && slug.current == $slug][0] {{{BASE_FIELDS},{TAXONOMY_FIELDS}
}}"""

SUMMARY_BY_CONTENT_ID = '*[_type == "aiSummary" && contentId == $contentId][0]'

QUERY_BY_CONTENT_TYPE: dict[ContentType, str] = {
    ContentType.ARTICLE: ARTICLE_BY_SLUG,
    ContentType.INTERVIEW: INTERVIEW_BY_SLUG,
    ContentType.PUBLICATION: PUBLICATION_BY_SLUG,
}
