"""
Event routing for inbound chat messages.

Each text message event is resolved to a binding, then either runs the
bind flow (unbound sender) or the first matching intent rule (bound
sender with a profile). Every processed event produces exactly one reply.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from . import config
from .errors import BatchProcessingError
from .schema import EMPLOYEES, MESSAGES, USER_MAP, Binding, EmployeeProfile, Note
from ..api.schemas import ImageReply, Reply, TextReply, WebhookEvent
from ..util.logging import logger

# Employee codes are 4-8 ASCII digits. Leading zeros are part of the code.
CANDIDATE_CODE = re.compile(r"[0-9]{4,8}")

PROFILE_KEYWORDS = ("info", "profile", "ข้อมูล", "โปรไฟล์")
IMAGE_KEYWORDS = ("image", "photo", "รูปภาพ", "ดูรูป")

PLACEHOLDER_IMAGE_URL = "https://placehold.co/1200x780"

BIND_SUCCESS_TEXT = "Account linked! Employee code {code} has been saved."
BIND_PROMPT_TEXT = (
    "Your account is not linked to an employee code yet. "
    "Please send your employee code (4-8 digits) to get started."
)
PROFILE_NOT_FOUND_TEXT = "No employee record linked to your code was found in the master data."
NOTE_ACK_TEXT = "Your edit request has been received and recorded."
PROFILE_TEMPLATE = (
    "[Employee Profile]\n"
    "Name: {name}\n"
    "Code: {code}\n"
    "Department: {department}\n"
    "Status: {status}\n"
    "\n"
    "Safety Record: {safety_record}"
)


def is_candidate_code(text: str) -> bool:
    """Check whether ``text`` looks like an employee code."""
    return bool(text) and CANDIDATE_CODE.fullmatch(text) is not None


def format_profile(profile: EmployeeProfile) -> str:
    return PROFILE_TEMPLATE.format(
        name=profile.name,
        code=profile.code,
        department=profile.department,
        status=profile.status,
        safety_record=profile.safety_record,
    )


@dataclass
class MessageContext:
    """A bound sender's message together with the linked profile."""
    user_id: str
    text: str
    binding: Binding
    profile: EmployeeProfile

    @property
    def lowered(self) -> str:
        return self.text.lower()


@dataclass
class IntentRule:
    name: str
    matches: Callable[[MessageContext], bool]
    handle: Callable[["EventRouter", MessageContext], Awaitable[Reply]]


@dataclass
class EventOutcome:
    user_id: str
    intent: str
    reply: Reply


class EventRouter:
    """Routes webhook events to replies.

    The store and messenger are shared handles created once per process.
    """

    def __init__(self, store, messenger, note_source: Optional[str] = None):
        self.store = store
        self.messenger = messenger
        self.note_source = note_source or config.NOTE_SOURCE_TAG

    async def handle_batch(self, events: Sequence[WebhookEvent]) -> List[Optional[EventOutcome]]:
        """Process every event concurrently and wait for all of them.

        A failing event never stops the others. Once all have settled,
        BatchProcessingError is raised if any of them failed.
        """
        results = await asyncio.gather(
            *(self.handle_event(event) for event in events),
            return_exceptions=True
        )

        failures = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                failures.append((index, result))
                logger.log_event_failure(index, _sender_of(events[index]) or "unknown", result)

        logger.log_webhook_batch(len(events), failed=len(failures), status="failed" if failures else "success")

        if failures:
            raise BatchProcessingError(len(events), failures)

        return list(results)

    async def handle_event(self, event: WebhookEvent) -> Optional[EventOutcome]:
        """Process one event. Returns None for events that get no reply."""
        if not event.is_text_message():
            return None

        user_id = _sender_of(event)
        if not user_id:
            logger.warning(f"Skipping text event without a sender id (source={event.source})")
            return None

        text = (event.message.text or "").strip()

        binding_doc = await self.store.get(USER_MAP, user_id)
        binding = Binding.from_document(user_id, binding_doc) if binding_doc else None

        if binding is None or not binding.emp_id:
            intent, reply = await self._route_unbound(user_id, text)
        else:
            intent, reply = await self._route_bound(user_id, text, binding)

        await self.messenger.reply(event.reply_token, reply)
        logger.log_reply(user_id, intent, reply.type)
        return EventOutcome(user_id=user_id, intent=intent, reply=reply)

    async def _route_unbound(self, user_id: str, text: str):
        if is_candidate_code(text):
            return "bind", await self._bind(user_id, text, rebind=False)
        return "bind_prompt", TextReply(text=BIND_PROMPT_TEXT)

    async def _route_bound(self, user_id: str, text: str, binding: Binding):
        profile_doc = await self.store.get(EMPLOYEES, binding.emp_id)
        if not profile_doc:
            return "profile_not_found", TextReply(text=PROFILE_NOT_FOUND_TEXT)

        context = MessageContext(
            user_id=user_id,
            text=text,
            binding=binding,
            profile=EmployeeProfile.from_document(binding.emp_id, profile_doc),
        )
        rule = classify(context)
        return rule.name, await rule.handle(self, context)

    async def _bind(self, user_id: str, code: str, rebind: bool) -> Reply:
        await self.store.set(USER_MAP, user_id, Binding(user_id=user_id, emp_id=code).to_document(), merge=True)
        logger.log_binding(user_id, code, rebind=rebind)
        return TextReply(text=BIND_SUCCESS_TEXT.format(code=code))

    # Intent handlers

    async def reply_profile(self, context: MessageContext) -> Reply:
        return TextReply(text=format_profile(context.profile))

    async def reply_image(self, context: MessageContext) -> Reply:
        return ImageReply.from_url(context.profile.photo_url or PLACEHOLDER_IMAGE_URL)

    async def rebind(self, context: MessageContext) -> Reply:
        return await self._bind(context.user_id, context.text, rebind=True)

    async def append_note(self, context: MessageContext) -> Reply:
        note = Note(
            user_id=context.user_id,
            emp_id=context.binding.emp_id,
            message=context.text,
            source=self.note_source,
        )
        note_id = await self.store.add(MESSAGES, note.to_document())
        logger.log_note(context.user_id, context.binding.emp_id, note_id, context.text)
        return TextReply(text=NOTE_ACK_TEXT)


def _sender_of(event: WebhookEvent) -> Optional[str]:
    return event.source.user_id if event.source else None


# First match wins; the last rule always matches.
INTENT_RULES: List[IntentRule] = [
    IntentRule("profile", lambda c: any(k in c.lowered for k in PROFILE_KEYWORDS), EventRouter.reply_profile),
    IntentRule("image", lambda c: any(k in c.lowered for k in IMAGE_KEYWORDS), EventRouter.reply_image),
    IntentRule("rebind", lambda c: is_candidate_code(c.text), EventRouter.rebind),
    IntentRule("note", lambda c: True, EventRouter.append_note),
]


def classify(context: MessageContext, rules: Sequence[IntentRule] = None) -> IntentRule:
    for rule in (INTENT_RULES if rules is None else rules):
        if rule.matches(context):
            return rule
    raise LookupError("No intent rule matched")
