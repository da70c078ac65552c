import json
import tempfile
import unittest
from datetime import date

import openai

from anime_agent_backend.models import (
    Confidence,
    DocumentQueryRequest,
    FlashcardRequest,
    FlashcardType,
    StudyDocumentInfo,
    StudyPlanRequest,
    TextChunk,
)
from anime_agent_backend.study.document_query import (
    ERROR_ANSWER,
    UNAVAILABLE_ANSWER,
    DocumentQueryService,
    rank_chunks,
)
from anime_agent_backend.study.flashcards import (
    FlashcardGenerator,
    build_flashcard_prompt,
    generate_basic_flashcards,
    parse_flashcards_from_text,
)
from anime_agent_backend.study.storage import LocalObjectStorage
from anime_agent_backend.study.study_plan import (
    StudyPlanGenerator,
    build_study_plan_prompt,
    generate_basic_study_plan,
    plan_window,
)

from helpers import ScriptedAgent, registry_with

CONTENT = (
    "Photosynthesis converts light energy into chemical energy. "
    "Chlorophyll absorbs mostly blue and red light. "
    "Short one. "
    "The Calvin cycle fixes carbon dioxide into sugars."
)


class FlashcardTests(unittest.TestCase):
    def test_basic_cards_use_long_sentences(self):
        cards = generate_basic_flashcards(FlashcardRequest(content=CONTENT, count=10))
        self.assertEqual(len(cards), 3)
        self.assertEqual(cards[0].id, "fc-1")
        self.assertEqual(cards[0].front, cards[0].back)

    def test_cloze_blanks_middle_word(self):
        cards = generate_basic_flashcards(
            FlashcardRequest(content="Mitochondria are the powerhouse of the cell.", flashcard_type=FlashcardType.CLOZE)
        )
        self.assertEqual(cards[0].front, "Mitochondria are the _____ of the cell")
        self.assertEqual(cards[0].back, "Mitochondria are the powerhouse of the cell")

    def test_image_based_cards_carry_prompts(self):
        cards = generate_basic_flashcards(
            FlashcardRequest(content=CONTENT, flashcard_type=FlashcardType.IMAGE_BASED, count=1)
        )
        self.assertEqual(len(cards), 1)
        self.assertIn("educational diagram", cards[0].image_prompt)
        self.assertIn("imageDescription", cards[0].to_payload())

    def test_parse_question_answer_text(self):
        text = "Q: What is ATP?\nA: The energy currency\nof the cell.\n\nQuestion: Where is DNA?\nAnswer: Nucleus"
        cards = parse_flashcards_from_text(text, FlashcardRequest(content="x", topic="Biology"))
        self.assertEqual(len(cards), 2)
        self.assertEqual(cards[0].back, "The energy currency of the cell.")
        self.assertEqual(cards[1].front, "Where is DNA?")
        self.assertEqual(cards[1].topic, "Biology")

    def test_prompt_truncates_content(self):
        prompt = build_flashcard_prompt(FlashcardRequest(content="a" * 4000, count=3))
        self.assertIn("a" * 3000 + "...", prompt)
        self.assertNotIn("a" * 3001, prompt)

    def test_generator_prefers_agent_json(self):
        reply = "```json\n" + json.dumps(
            {"flashcards": [{"id": "x1", "type": "basic", "front": "F", "back": "B", "difficulty": "easy", "tags": ["t"]}]}
        ) + "\n```"
        agent = ScriptedAgent("studyBuddyAgent", reply)
        result = FlashcardGenerator(registry_with(agent)).generate(FlashcardRequest(content=CONTENT))
        self.assertEqual(result.total_generated, 1)
        self.assertEqual(result.flashcards[0].tags, ["t"])
        self.assertFalse(agent.prompts[0][1])

    def test_generator_trims_agent_cards_to_count(self):
        cards = [
            {"id": f"x{i}", "type": "basic", "front": f"F{i}", "back": f"B{i}", "difficulty": "easy", "tags": []}
            for i in range(1, 6)
        ]
        agent = ScriptedAgent("studyBuddyAgent", json.dumps({"flashcards": cards}))
        result = FlashcardGenerator(registry_with(agent)).generate(FlashcardRequest(content=CONTENT, count=2))
        self.assertEqual(result.total_generated, 2)
        self.assertEqual([card.front for card in result.flashcards], ["F1", "F2"])

    def test_generator_falls_back_on_agent_failure(self):
        agent = ScriptedAgent("studyBuddyAgent", openai.OpenAIError("down"))
        result = FlashcardGenerator(registry_with(agent)).generate(FlashcardRequest(content=CONTENT))
        self.assertEqual(result.total_generated, 3)

    def test_generator_falls_back_on_unusable_reply(self):
        agent = ScriptedAgent("studyBuddyAgent", "Sorry, I can't help with that.")
        result = FlashcardGenerator(registry_with(agent)).generate(FlashcardRequest(content=CONTENT, count=2))
        self.assertEqual(result.total_generated, 2)

    def test_generator_without_agent(self):
        result = FlashcardGenerator(registry_with()).generate(FlashcardRequest(content=CONTENT))
        self.assertEqual(result.total_generated, 3)


class StudyPlanTests(unittest.TestCase):
    def test_window_defaults_to_thirty_days(self):
        start, days = plan_window(StudyPlanRequest(), today=date(2024, 1, 1))
        self.assertEqual((start, days), (date(2024, 1, 1), 30))

    def test_window_never_negative(self):
        request = StudyPlanRequest(current_date=date(2024, 2, 1), target_completion_date=date(2024, 1, 1))
        self.assertEqual(plan_window(request)[1], 0)

    def test_basic_plan_skips_weekends_and_alternates_review(self):
        # 2024-01-01 is a Monday
        request = StudyPlanRequest(
            current_date=date(2024, 1, 1),
            target_completion_date=date(2024, 1, 8),
            study_hours_per_day=2,
            document_metadata=StudyDocumentInfo(chapters=["Cells", "Genetics"]),
        )
        plan = generate_basic_study_plan(request)

        self.assertEqual(plan.total_days, 5)
        self.assertEqual([day.day_of_week for day in plan.schedule], ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"])
        monday = plan.schedule[0]
        self.assertEqual([(s.time, s.duration) for s in monday.sessions], [("09:00", 1.5), ("11:00", 0.5)])
        self.assertEqual(monday.sessions[0].type, "review")
        self.assertEqual(monday.sessions[0].topic, "Cells")
        self.assertEqual(plan.schedule[1].sessions[0].type, "new-material")
        self.assertEqual(plan.schedule[1].sessions[0].topic, "Genetics")
        self.assertEqual(monday.breaks[0].time, "10:30")
        self.assertEqual(monday.total_hours, 2.0)
        self.assertEqual(plan.total_hours, 10.0)
        self.assertEqual(plan.end_date, "2024-01-08")

    def test_full_week_keeps_weekends(self):
        request = StudyPlanRequest(
            current_date=date(2024, 1, 1),
            target_completion_date=date(2024, 1, 8),
            study_days_per_week=7,
        )
        self.assertEqual(generate_basic_study_plan(request).total_days, 7)

    def test_prompt_mentions_parameters(self):
        request = StudyPlanRequest(
            current_date=date(2024, 1, 1),
            focus_areas=["Genetics"],
            document_metadata=StudyDocumentInfo(total_pages=120),
        )
        prompt = build_study_plan_prompt(request)
        self.assertIn("Total days available: 30", prompt)
        self.assertIn("Total pages: 120", prompt)
        self.assertIn("Focus Areas: Genetics", prompt)

    def test_generator_uses_valid_agent_plan(self):
        reply = json.dumps({"planType": "weekly", "startDate": "2024-01-01", "schedule": [], "totalDays": 0})
        agent = ScriptedAgent("studyBuddyAgent", reply)
        plan = StudyPlanGenerator(registry_with(agent)).generate(StudyPlanRequest(plan_type="weekly"))
        self.assertEqual(plan.plan_type, "weekly")
        self.assertEqual(plan.schedule, [])

    def test_generator_falls_back_on_invalid_plan(self):
        agent = ScriptedAgent("studyBuddyAgent", json.dumps({"schedule": "tomorrow"}))
        request = StudyPlanRequest(current_date=date(2024, 1, 1), target_completion_date=date(2024, 1, 3))
        plan = StudyPlanGenerator(registry_with(agent)).generate(request)
        self.assertEqual(plan.total_days, 2)
        self.assertEqual(plan.recommendations[0], "Study in a quiet, distraction-free environment")


class DocumentQueryTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.storage = LocalObjectStorage(self._tmp.name)
        chunks = [
            TextChunk(text="Cells divide by mitosis.", index=0, document_id="doc-1", total_chunks=3, char_start=0),
            TextChunk(text="Meiosis produces gametes from cells.", index=1, document_id="doc-1", total_chunks=3, char_start=25),
            TextChunk(text="Unrelated appendix.", index=2, document_id="doc-1", total_chunks=3, char_start=62),
        ]
        self.storage.upload(
            json.dumps([chunk.to_payload() for chunk in chunks]).encode("utf-8"),
            "chunks.json",
            "documents/doc-1",
        )
        self.chunks = chunks

    def tearDown(self):
        self._tmp.cleanup()

    def test_rank_chunks_by_shared_terms(self):
        ranked = rank_chunks("How do cells undergo meiosis?", self.chunks, limit=5)
        self.assertEqual([chunk.index for chunk in ranked], [1, 0])

    def test_answer_from_json_with_context(self):
        reply = json.dumps({"answer": "By meiosis.", "sources": [{"chapter": "2"}], "confidence": "high"})
        agent = ScriptedAgent("studyBuddyAgent", reply)
        answer = DocumentQueryService(registry_with(agent), self.storage).query(
            DocumentQueryRequest(question="How are gametes produced?", document_id="doc-1")
        )
        self.assertEqual(answer.answer, "By meiosis.")
        self.assertEqual(answer.confidence, Confidence.HIGH)
        self.assertEqual(answer.context, ["Meiosis produces gametes from cells."])
        self.assertEqual(len(answer.sources), 1)
        self.assertIn("Meiosis produces gametes", agent.prompts[0][0])

    def test_plain_text_answer(self):
        agent = ScriptedAgent("studyBuddyAgent", "Cells divide by mitosis.")
        answer = DocumentQueryService(registry_with(agent), self.storage).query(
            DocumentQueryRequest(question="How do cells divide?")
        )
        self.assertEqual(answer.answer, "Cells divide by mitosis.")
        self.assertEqual(answer.confidence, Confidence.MEDIUM)
        self.assertEqual(answer.context, [])

    def test_agent_failure(self):
        agent = ScriptedAgent("studyBuddyAgent", openai.OpenAIError("timeout"))
        answer = DocumentQueryService(registry_with(agent), self.storage).query(DocumentQueryRequest(question="?"))
        self.assertEqual(answer.answer, ERROR_ANSWER)
        self.assertEqual(answer.confidence, Confidence.LOW)

    def test_no_agent(self):
        answer = DocumentQueryService(registry_with(), self.storage).query(DocumentQueryRequest(question="?"))
        self.assertEqual(answer.answer, UNAVAILABLE_ANSWER)
        self.assertEqual(answer.confidence, Confidence.LOW)


if __name__ == "__main__":
    unittest.main()
