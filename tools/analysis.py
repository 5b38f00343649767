"""Two-pass LLM analysis of meeting transcripts and of pain points across meetings.

Pass 1 asks a reasoning model for a free-text analysis. Pass 2 asks a
structuring model to restate that analysis as strict JSON. All calls go
through litellm with the caller's own OpenAI key.
"""
import json
import logging
from typing import Any, Iterable, Optional, Type

import litellm
from pydantic import BaseModel

from errors import AnalysisError
from model_config import get_analysis_model, get_cluster_model, get_structuring_model
from schemas.analysis import ClusterAnalysis, PainPointAnalysis

logger = logging.getLogger(__name__)

NOT_MENTIONED = "Not explicitly mentioned"
VALID_IMPACTS = ("High", "Medium", "Low")
UNSPECIFIED_TITLE = "Unspecified Pain Point"
CITATION_SEPARATOR = "\n\n"

PAIN_POINT_PROMPT = """Analyze the transcript of a discovery, exploration, and pain meeting between an early-stage startup founder and a potential Ideal Customer Profile (ICP).

# Your Task
Extract the pain points and challenges discussed by the potential ICP, with supporting evidence from the transcript.

# Requirements
1. For each pain point:
   - Identify the core issue/challenge as a SHORT, concise title
   - Provide a FULL description of the pain point
   - Include DIRECT QUOTES from the transcript that support this pain point
   - ONLY extract root causes that are EXPLICITLY mentioned (don't infer them)
   - ONLY note impact levels (High/Medium/Low) if EXPLICITLY stated (don't guess)

2. DO NOT invent, infer, or assume information that isn't directly stated in the transcript.

3. For each finding, include exact quotes from the transcript as citations.

# Output Format
For each pain point, provide:
1. A short, descriptive title (4-8 words)
2. A full description of the pain point
3. Direct transcript citations for the pain point (exact quotes)
4. Root cause (ONLY if explicitly stated, otherwise indicate "Not explicitly mentioned")
5. Impact level (ONLY if classifiable as High/Medium/Low, otherwise indicate "Not explicitly mentioned")

TRANSCRIPT:
{transcript}"""

PAIN_POINT_STRUCTURING_PROMPT = """Structure the analysis into JSON, focusing on pain points with their citations, root causes (if explicitly mentioned), and impact levels (if explicitly mentioned).

Here is the rough analysis text to reference. You MUST use ONLY these pain points and not make up anything:
{analysis}

# IMPORTANT RULES:
1. Include DIRECT citations/quotes from the transcript
2. For root_cause: set it to null if not explicitly stated
3. For impact: set it to null if not clearly stated as High/Medium/Low
4. Keep titles short and descriptive
5. Use the EXACT pain points from the analysis text above - do not create generic examples
"""

CLUSTER_PROMPT = """Analyze the provided pain points from different customer meetings and identify common themes or patterns.
Semantically cluster these pain points, even if they are described with different terminology.

# Your Task:
1. Analyze all pain points based on their descriptions, titles, and root causes
2. Group them into meaningful clusters based on the underlying issues they represent
3. Provide a representative name and description for each cluster
4. Include IDs of all pain points belonging to each cluster
5. Summarize the common themes across industries when applicable

# Important Rules:
1. Do NOT create generic clusters. Each cluster must be based on ACTUAL similar pain points
2. Pain points may be worded differently but represent the same underlying issue - group these together
3. Create clusters that have real business meaning - not merely linguistic similarities

# Output Format:
For each cluster, provide:
1. A clear, concise name for this group of similar pain points
2. A 3-4 sentence description of the common theme
3. Number of pain points in this cluster
4. List of IDs of all pain points in this cluster
5. Summary of impact levels (how many high/medium/low/unknown)
6. List of all industries where this pain point was mentioned
7. List of company names that mentioned this pain point

PAIN POINTS TO ANALYZE:
{pain_points}"""

CLUSTER_STRUCTURING_PROMPT = """Convert the following pain point cluster analysis into a structured JSON format.

Here is the analysis text to parse. You MUST base your JSON strictly on this text and not add or remove clusters:
{analysis}

# IMPORTANT RULES:
1. Include ALL clusters from the analysis in the 'clusters' array
2. Keep numeric values (like counts) as integers, not strings
3. Don't make up any information - if something isn't in the analysis, use empty arrays or zeros
4. Each impact_summary object MUST have exactly these fields: High, Medium, Low, Unknown (integers)
"""


async def _complete(
    model: str,
    prompt: str,
    api_key: str,
    response_format: Optional[Type[BaseModel]] = None,
    **kwargs,
) -> str:
    """Run one chat completion and return the message text."""
    try:
        response = await litellm.acompletion(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            api_key=api_key,
            response_format=response_format,
            **kwargs,
        )
    except Exception as exc:
        raise AnalysisError(f"LLM call to {model} failed: {exc}") from exc
    return response.choices[0].message.content or ""


# ─── Normalization ──────────────────────────────────────────────────────────

def normalize_pain_point(point: dict[str, Any]) -> dict[str, str]:
    """Map one extracted pain point onto the crm.pain_points columns."""
    root_cause = point.get("root_cause")
    if not isinstance(root_cause, str) or not root_cause.strip():
        root_cause = NOT_MENTIONED

    impact = point.get("impact")
    if impact not in VALID_IMPACTS:
        impact = NOT_MENTIONED

    citations = point.get("citations")
    citations = CITATION_SEPARATOR.join(citations) if isinstance(citations, list) else ""

    title = point.get("title") or UNSPECIFIED_TITLE
    return {
        "title": title,
        "description": point.get("description") or title,
        "root_cause": root_cause,
        "impact": impact,
        "citations": citations,
    }


def _load_json(content: str, key: str) -> list:
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.error("Could not parse structured LLM output: %s", exc)
        return []
    items = data.get(key) if isinstance(data, dict) else None
    return items if isinstance(items, list) else []


def parse_pain_points(content: str) -> list[dict[str, str]]:
    """Parse pass-2 JSON into normalized pain point rows. Unparseable → []."""
    return [normalize_pain_point(p) for p in _load_json(content, "pain_points") if isinstance(p, dict)]


def parse_clusters(content: str) -> list[dict[str, Any]]:
    """Parse pass-2 cluster JSON. Unparseable → []."""
    clusters = []
    for cluster in _load_json(content, "clusters"):
        if not isinstance(cluster, dict) or not cluster.get("cluster_name"):
            continue
        summary = cluster.get("impact_summary") or {}
        clusters.append({
            "cluster_name": cluster["cluster_name"],
            "description": cluster.get("description") or "",
            "count": int(cluster.get("count") or 0),
            "pain_point_ids": [str(i) for i in cluster.get("pain_point_ids") or []],
            "impact_summary": {
                level: int(summary.get(level) or 0)
                for level in ("High", "Medium", "Low", "Unknown")
            },
            "industries": list(cluster.get("industries") or []),
            "companies": list(cluster.get("companies") or []),
        })
    return clusters


# ─── Transcript analysis ────────────────────────────────────────────────────

async def analyze_pain_points(transcript: str, api_key: str) -> list[dict[str, str]]:
    """Extract pain points from a transcript.

    Returns rows with title, description, root_cause, impact, citations.
    Raises AnalysisError when an LLM call fails.
    """
    rough = await _complete(
        get_analysis_model(),
        PAIN_POINT_PROMPT.format(transcript=transcript),
        api_key,
        reasoning_effort="high",
    )
    if not rough.strip():
        rough = "No rough analysis text returned."
    logger.info("Rough analysis: %d characters", len(rough))

    structured = await _complete(
        get_structuring_model(),
        PAIN_POINT_STRUCTURING_PROMPT.format(analysis=rough),
        api_key,
        response_format=PainPointAnalysis,
        temperature=0.2,
        max_tokens=10000,
        top_p=1,
    )
    pain_points = parse_pain_points(structured)
    logger.info("Extracted %d pain points", len(pain_points))
    return pain_points


# ─── Cross-meeting clustering ───────────────────────────────────────────────

def build_cluster_context(pain_points: Iterable[Any]) -> list[dict[str, Any]]:
    """Flatten PainPoint rows (meeting, contact, company loaded) for the prompt."""
    context = []
    for pp in pain_points:
        meeting = pp.meeting
        company = meeting.company if meeting is not None else None
        contact = meeting.contact if meeting is not None else None
        context.append({
            "id": str(pp.id),
            "title": pp.title,
            "description": pp.description,
            "root_cause": pp.root_cause,
            "impact": pp.impact,
            "company": company.name if company else "Unknown",
            "industry": company.industry if company else "Unknown",
            "contact": contact.name if contact else "Unknown",
        })
    return context


def attach_examples(
    clusters: list[dict[str, Any]], context: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Add `examples`: the context rows named by pain_point_ids. Unknown ids are dropped."""
    by_id = {item["id"]: item for item in context}
    return [
        {**cluster, "examples": [by_id[i] for i in cluster["pain_point_ids"] if i in by_id]}
        for cluster in clusters
    ]


async def analyze_common_pain_points(
    context: list[dict[str, Any]], api_key: str
) -> list[dict[str, Any]]:
    """Cluster pain points from many meetings. Raises AnalysisError on LLM failure."""
    rough = await _complete(
        get_cluster_model(),
        CLUSTER_PROMPT.format(pain_points=json.dumps(context, indent=2)),
        api_key,
        reasoning_effort="high",
    )
    if not rough.strip():
        rough = "No analysis text returned."
    logger.info("Cluster analysis: %d characters", len(rough))

    structured = await _complete(
        get_structuring_model(),
        CLUSTER_STRUCTURING_PROMPT.format(analysis=rough),
        api_key,
        response_format=ClusterAnalysis,
        temperature=0.2,
        max_tokens=10000,
        top_p=1,
    )
    clusters = parse_clusters(structured)
    logger.info("Received %d clusters", len(clusters))
    return clusters
