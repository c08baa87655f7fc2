"""Prompt text for every language model call the pipeline makes."""

import json
from typing import Dict, List, Optional

from .models.confidence import fraction_to_percentage
from .models.item import Item, Question
from .models.match import Candidate

CATEGORIES = [
    "Electronics",
    "Clothing",
    "Accessories",
    "Documents",
    "Keys",
    "Bags",
    "Books",
    "Jewelry",
    "Sports Equipment",
    "Other",
]


def _item_block(item: Item) -> str:
    return "\n".join([
        f"- **ID**: {item.id}",
        f"- **Title**: {item.title}",
        f"- **Description**: {item.description or 'Not provided'}",
        f"- **Category**: {item.category}",
        f"- **Location**: {item.location_line()}",
        f"- **Coordinates**: {item.coordinates_line()}",
        f"- **Date**: {item.date or 'Unknown'}",
        f"- **Image URL**: {item.image_url or 'No image'}",
        f"- **AI Tags**: {', '.join(item.ai_tags) or 'None'}",
    ])


class MatchingPrompts:
    SYSTEM = (
        "You are an expert at matching lost and found items. Analyze all provided "
        "data carefully. Return accurate confidence scores and specific reasoning "
        "as a single valid JSON object."
    )

    CRITERIA = """## MATCHING CRITERIA (in order of importance)
1. **IMAGE ANALYSIS** when image URLs are present
2. **DESCRIPTION MATCH** (colour, brand, material, distinguishing marks)
3. **CATEGORY MATCH**
4. **LOCATION PROXIMITY**
5. **DATE PROXIMITY**
6. **AI TAGS OVERLAP**
A semantic similarity percentage, when shown, is a prior from a vector search, not a verdict."""

    OUTPUT = """## OUTPUT FORMAT
Return a JSON object with a `matches` array, sorted by confidence descending.
Only include candidates with confidence of at least {min_confidence}.

{{
  "matches": [
    {{
      "candidate_id": "<candidate ID exactly as given>",
      "confidence": <integer 0-100>,
      "reasoning": "<brief explanation of WHY these may be the same item>"
    }}
  ]
}}

IMPORTANT:
- Confidence reflects how likely the two posts describe the SAME physical item
- Return an empty matches array if nothing fits"""

    @staticmethod
    def build(item: Item, candidates: List[Candidate], min_confidence: int) -> str:
        sections = [
            "Analyze a newly posted item and find which candidates may be the same object.",
            f"## NEWLY POSTED ITEM ({item.status.value.upper()})\n{_item_block(item)}",
            f"## CANDIDATE ITEMS ({item.status.opposite.value.upper()})",
        ]
        for index, candidate in enumerate(candidates, start=1):
            header = f"### Candidate {index}"
            if candidate.similarity is not None:
                header += f" (Semantic Similarity: {fraction_to_percentage(candidate.similarity)}%)"
            sections.append(f"{header}\n{_item_block(candidate.item)}")
        sections.append(MatchingPrompts.CRITERIA)
        sections.append(MatchingPrompts.OUTPUT.format(min_confidence=min_confidence))
        return "\n\n".join(sections)


class ClaimVerificationPrompts:
    SYSTEM = (
        "You are an expert at analyzing ownership claims for lost and found items. "
        "You return fair assessments as one valid JSON object. Be lenient with "
        "phrasing differences but strict about factual accuracy."
    )

    POLICY = """## SCORING POLICY
- Imprecise but close answers ("Black" vs "Dark black", "Yes, front" vs "Yes, front side") are **Correct**.
- Vague answers that are not wrong are **Partially Correct**.
- Clearly different answers are **Incorrect**.
- "I don't know" is neutral, UNLESS it is the answer to more than half of the questions; then it is a negative signal.
- A linked lost post that matches the found item is the single strongest positive signal and should materially raise confidence.
- If the claimant admits the photos come from the internet, discount them entirely and leave photos out of evidence_analysis."""

    OUTPUT = """## REQUIRED JSON OUTPUT FORMAT
{
  "confidence_percentage": <integer 0-100>,
  "analysis": "[VERDICT] <one sentence verdict> [ELABORATION] <short explanation>",
  "question_analysis": {
    "<question_id>": {
      "status": "Correct" | "Partially Correct" | "Incorrect",
      "score": <0-100>,
      "explanation": "<why>"
    }
  },
  "linked_post_analysis": {
    "status": "Strong Match" | "Possible Match" | "No Match",
    "similarity_score": <0-100>,
    "explanation": "<why>"
  },
  "evidence_analysis": {
    "strength": "Strong" | "Moderate" | "Weak" | "None",
    "explanation": "<why>",
    "photos_considered": <number of photos used>,
    "photos_internet_sourced": <true|false>
  }
}
Use the exact question IDs given above. Omit linked_post_analysis when no linked post is provided.
Return ONLY the JSON object."""

    @staticmethod
    def build(
        item: Item,
        linked_post: Optional[Item],
        photo_count: int,
        questions: List[Question],
        answers: Dict[str, str],
    ) -> str:
        sections = [
            "Verify whether the person claiming this found item is its legitimate owner.",
            f"## FOUND ITEM\n{_item_block(item)}",
        ]

        if linked_post is not None:
            sections.append(
                "## CLAIMANT'S LINKED LOST POST\n"
                f"{_item_block(linked_post)}\n"
                "Judge how closely this lost post describes the found item."
            )
        else:
            sections.append("## CLAIMANT'S LINKED LOST POST\nNone provided.")

        sections.append(
            "## SUPPORTING PHOTOS\n"
            f"The claimant uploaded {photo_count} photo(s). "
            "If the claimant indicates these photos were sourced from the internet, "
            "discount them entirely."
        )

        qa_lines = ["## VERIFICATION QUESTIONS AND ANSWERS"]
        for index, question in enumerate(questions, start=1):
            claimant_answer = answers.get(question.id) or "No answer provided"
            owner_answer = question.correct_answer or "not provided"
            qa_lines.append(
                f"### Question {index} (ID: {question.id})\n"
                f"**Question**: {question.question_text}\n"
                f"**Claimant's Answer**: {json.dumps(claimant_answer)}\n"
                f"**Owner's Expected Answer**: {owner_answer}"
            )
        if not questions:
            qa_lines.append("No verification questions were set for this item.")
        sections.append("\n".join(qa_lines))

        sections.append(ClaimVerificationPrompts.POLICY)
        sections.append(ClaimVerificationPrompts.OUTPUT)
        return "\n\n".join(sections)


class PhotoPrompts:
    SYSTEM = """You are an expert at detecting downloaded or fake images. Determine whether the image is an ORIGINAL photo taken by the claimant or a DOWNLOADED/SCREENSHOT/STOCK image.
Red flags to look for:
- Perfect studio lighting
- Watermarks or logos
- Compression artifacts typical of social media downloads
- Generic professional composition
- Text overlays or editing marks
- Screenshot UI elements (status bars, buttons)

Return ONLY valid JSON with this structure:
{
  "is_likely_original": true | false,
  "confidence": <integer 0-100>,
  "analysis": "<brief explanation>",
  "red_flags": ["<concern>", ...]
}"""

    @staticmethod
    def build(photo_url: str) -> str:
        return (
            f"Analyze this image: {photo_url}\n"
            "Is it an original photo or a downloaded/fake image? "
            "Consider composition, quality and authenticity indicators."
        )


class QuestionPrompts:
    SYSTEM = (
        "You are an expert at creating verification questions for lost and found "
        "items. Questions must be specific, fair, and answerable only by the true "
        "owner. Return valid JSON only."
    )

    TASK = """## YOUR TASK
Generate 3-5 questions that:
1. Only the true owner would know; never ask what the description above already answers
2. Are specific to this type of item
3. Test unique characteristics: serial numbers, hidden features, contents, modifications
4. Are clear, with one obvious answer for the owner, answerable in 1-2 sentences

## REQUIRED JSON OUTPUT FORMAT
{
  "questions": ["<question 1>", "<question 2>", "<question 3>"]
}"""

    @staticmethod
    def build(item: Item) -> str:
        return "\n\n".join([
            "Generate verification questions for this lost/found item.",
            "## ITEM DETAILS\n"
            f"- **Title**: {item.title}\n"
            f"- **Description**: {item.description or 'Not provided'}\n"
            f"- **Category**: {item.category}\n"
            f"- **Location**: {item.location_line()}\n"
            f"- **Type**: {item.status.value}",
            QuestionPrompts.TASK,
        ])


class CategoryPrompts:
    SYSTEM = (
        "You are a helpful assistant that categorizes lost/found items. "
        "Respond with only ONE category name."
    )

    @staticmethod
    def build(title: str, description: str) -> str:
        return (
            "Based on this lost/found item, suggest the most appropriate category. "
            f"Only respond with ONE of these exact categories: {', '.join(CATEGORIES)}.\n\n"
            f"Title: {title}\n"
            f"Description: {description}\n\n"
            "Category:"
        )
