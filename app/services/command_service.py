"""
Turns one inbound text into a reply and the sender's next session.

Rules are evaluated top to bottom; the first whose predicate holds decides.
`interpret` has no side effects: a confirmed ticket comes back on the
Decision for the caller to persist.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from app.logging_config import get_logger
from app.models import Ticket
from app.services import state_machine
from app.services.catalog_service import (
    MAX_ISSUE_NUMBER,
    MIN_ISSUE_NUMBER,
    OTHER_DEPARTMENT_NUMBER,
    Catalog,
    Department,
)
from app.services.intent_service import (
    GREETING_NUDGE_RESPONSE,
    MENU_COMMAND,
    SUPPORT_GREETING_RESPONSE,
    Intent,
    contains_support_keyword,
    farewell_response,
    greeting_response,
    is_confirmation,
    is_menu_command,
    is_support_greeting,
    normalize_command,
    starts_with_greeting,
)
from app.services.state_machine import OTHER_SELECTION, ChatSession, SessionState
from app.services.ticket_service import build_ticket

logger = get_logger("command_service")

CONFIRMATION_PROMPT = 'Would you like to create a ticket for this issue? Reply with "yes" to proceed.'
HELP_TEXT = (
    "Available commands:\n"
    "#sprout - Show department menu\n"
    "#sprout [01-07] - Show department issues\n"
    "#sprout [C1-C10, I1-I10, N1-N10, S1-S10, P1-P10, W1-W10] - Select specific issue"
)
TICKET_CREATED_TEMPLATE = (
    "Ticket created successfully!\n\n"
    "Ticket Details:\n"
    "Ticket Number: {ticket_number}\n"
    "Issue: {issue}\n"
    "Status: {status}\n\n"
    "We will contact you shortly regarding this ticket.\n\n"
    "Type #sprout to return to the main menu."
)

DEPARTMENT_NUMBER_PATTERN = re.compile(r"^\d{2}$")
ISSUE_CODE_PATTERN = re.compile(r"^([cinspw])\s*(\d+)$", re.IGNORECASE)


@dataclass(frozen=True)
class Decision:
    rule: str
    intent: Intent
    session: ChatSession
    reply: Optional[str] = None
    ticket: Optional[Ticket] = None


@dataclass(frozen=True)
class RuleContext:
    text: str  # trimmed, lowercased
    session: ChatSession
    catalog: Catalog
    clock: Callable[[], datetime]


@dataclass(frozen=True)
class Rule:
    name: str
    matches: Callable[[RuleContext], bool]
    apply: Callable[[RuleContext], Decision]


# --- replies -----------------------------------------------------------------


def format_root_menu(catalog: Catalog) -> str:
    lines = [catalog.menu_header]
    lines.extend(f"{dept.number} - {dept.name}" for dept in catalog.departments)
    lines.append("")
    lines.append(catalog.menu_footer)
    return "\n".join(lines)


def format_department_issues(catalog: Catalog, department: Department) -> str:
    issues = catalog.issues_of(department)
    lines = [f"{department.name}:"]
    lines.extend(issue.label for issue in issues)
    if issues:
        lines.append("")
        lines.append(catalog.issue_footer.format(example=issues[0].code))
    return "\n".join(lines)


def format_other_prompt(catalog: Catalog) -> str:
    return f"{catalog.other.description}\n\n{CONFIRMATION_PROMPT}"


def format_selected_issue(label: str) -> str:
    return f"Selected issue: {label}\n\n{CONFIRMATION_PROMPT}"


def format_ticket_created(ticket: Ticket) -> str:
    return TICKET_CREATED_TEMPLATE.format(
        ticket_number=ticket.ticket_number,
        issue=ticket.issue,
        status=ticket.status,
    )


# --- rule actions --------------------------------------------------------------


def _reply_support_greeting(ctx: RuleContext) -> Decision:
    return Decision(
        rule="support_greeting",
        intent=Intent.SUPPORT_GREETING,
        session=state_machine.reset(ctx.session),
        reply=SUPPORT_GREETING_RESPONSE,
    )


def _reply_greeting(ctx: RuleContext) -> Decision:
    return Decision(
        rule="greeting",
        intent=Intent.GREETING,
        session=state_machine.reset(ctx.session),
        reply=greeting_response(ctx.text) or GREETING_NUDGE_RESPONSE,
    )


def _reply_support_keyword(ctx: RuleContext) -> Decision:
    return Decision(
        rule="support_keyword",
        intent=Intent.SUPPORT_REQUEST,
        session=ctx.session,
        reply=SUPPORT_GREETING_RESPONSE,
    )


def _confirm_ticket(ctx: RuleContext) -> Decision:
    selection, session = state_machine.confirm(ctx.session)
    ticket = build_ticket(selection, customer_phone=ctx.session.sender, clock=ctx.clock)
    return Decision(
        rule="confirm_ticket",
        intent=Intent.CONFIRMATION,
        session=session,
        reply=format_ticket_created(ticket),
        ticket=ticket,
    )


def _reply_farewell(ctx: RuleContext) -> Decision:
    return Decision(
        rule="farewell",
        intent=Intent.FAREWELL,
        session=ctx.session,
        reply=farewell_response(ctx.text),
    )


def _ignore(ctx: RuleContext) -> Decision:
    return Decision(rule="ignored", intent=Intent.OTHER, session=ctx.session)


def _help(ctx: RuleContext) -> Decision:
    return Decision(rule="help", intent=Intent.MENU, session=ctx.session, reply=HELP_TEXT)


def _menu_command(ctx: RuleContext) -> Decision:
    argument = ctx.text[len(MENU_COMMAND):].strip()
    catalog = ctx.catalog

    if not argument:
        return Decision(
            rule="root_menu",
            intent=Intent.MENU,
            session=state_machine.reset(ctx.session),
            reply=format_root_menu(catalog),
        )

    if DEPARTMENT_NUMBER_PATTERN.match(argument):
        department = catalog.resolve_department_by_number(argument)
        if department is None:
            return _help(ctx)
        if department.number == OTHER_DEPARTMENT_NUMBER:
            return Decision(
                rule="other_department",
                intent=Intent.MENU,
                session=state_machine.select_issue(ctx.session, OTHER_SELECTION),
                reply=format_other_prompt(catalog),
            )
        return Decision(
            rule="department_issues",
            intent=Intent.MENU,
            session=state_machine.reset(ctx.session),
            reply=format_department_issues(catalog, department),
        )

    match = ISSUE_CODE_PATTERN.match(argument)
    if match:
        letter, digits = match.group(1).upper(), match.group(2)
        number = int(digits)
        if not MIN_ISSUE_NUMBER <= number <= MAX_ISSUE_NUMBER:
            return _help(ctx)
        issue = catalog.find_issue(letter, number)
        if issue is None:
            logger.warning(
                "Issue code has no catalog entry",
                extra={"context": {"issue_code": f"{letter}{number}", "sender": ctx.session.sender}},
            )
            return _help(ctx)
        return Decision(
            rule="select_issue",
            intent=Intent.MENU,
            session=state_machine.select_issue(ctx.session, issue),
            reply=format_selected_issue(issue.label),
        )

    return _help(ctx)


RULES: tuple[Rule, ...] = (
    Rule(
        name="support_greeting",
        matches=lambda ctx: is_support_greeting(ctx.text),
        apply=_reply_support_greeting,
    ),
    Rule(
        name="greeting",
        matches=lambda ctx: starts_with_greeting(ctx.text),
        apply=_reply_greeting,
    ),
    Rule(
        name="support_keyword",
        matches=lambda ctx: contains_support_keyword(ctx.text) and not is_menu_command(ctx.text),
        apply=_reply_support_keyword,
    ),
    Rule(
        name="confirm_ticket",
        matches=lambda ctx: is_confirmation(ctx.text)
        and ctx.session.state == SessionState.AWAITING_CONFIRMATION,
        apply=_confirm_ticket,
    ),
    Rule(
        name="farewell",
        matches=lambda ctx: farewell_response(ctx.text) is not None,
        apply=_reply_farewell,
    ),
    Rule(
        name="ignored",
        matches=lambda ctx: not is_menu_command(ctx.text),
        apply=_ignore,
    ),
    Rule(
        name="menu",
        matches=lambda ctx: True,
        apply=_menu_command,
    ),
)


def interpret(
    session: ChatSession,
    text: str,
    catalog: Catalog,
    *,
    clock: Callable[[], datetime] = datetime.now,
    rules: tuple[Rule, ...] = RULES,
) -> Decision:
    """Pick the first matching rule and apply it."""
    ctx = RuleContext(text=normalize_command(text), session=session, catalog=catalog, clock=clock)
    for rule in rules:
        if rule.matches(ctx):
            return rule.apply(ctx)
    return _ignore(ctx)
