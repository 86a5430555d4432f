# src/brain/session/state_machine.py
from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from .. import settings
from ..catalog import MenuCache
from ..errors import ExternalServiceError
from ..models import ExpectedContext, Intent, IntentResult, MenuItem, Order, Restaurant, Session
from ..parser.order_parser import OrderParser
from ..parser.validator import ValidationReason, ValidationResult, validate_order
from ..restaurant.resolver import LocationStatus, RestaurantResolver
from ..restaurant.selection import select_from_list

logger = logging.getLogger(settings.LOGGER_NAME)


@dataclass(frozen=True)
class ReplyCore:
    """Un-styled reply: the caller owns wording, tone and speech."""

    kind: str
    text: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TurnInput:
    text: str
    result: IntentResult
    location_hint: Optional[str] = None
    near: Optional[Tuple[float, float]] = None


@dataclass
class Transition:
    reply: ReplyCore
    updates: Dict[str, Any] = field(default_factory=dict)


def _numbered(restaurants: Sequence[Restaurant], start: int = 0) -> str:
    return ", ".join(f"{start + i + 1}. {r.name}" for i, r in enumerate(restaurants))


def _order_line(order: Order) -> str:
    return f"{order.summary()}, total {order.total:.2f}"


_CLARIFY_TEXT = {
    ValidationReason.NOT_FOUND: "I couldn't find that on the menu.",
    ValidationReason.UNAVAILABLE: "That dish is not available right now.",
    ValidationReason.INVALID_SIZE: "That size isn't offered.",
    ValidationReason.MISSING_SIZE: "Which size would you like?",
    ValidationReason.AMBIGUOUS: "Which one do you mean?",
}

Handler = Callable[["DialogueStateMachine", Session, TurnInput], Awaitable[Transition]]


class DialogueStateMachine:
    """
    Owns every session transition. Handlers compute a Transition (reply +
    partial session update); apply() writes the update onto the working copy
    and returns it so the caller can persist exactly what changed.
    """

    def __init__(
        self,
        resolver: RestaurantResolver,
        menus: MenuCache,
        *,
        page_size: Optional[int] = None,
    ):
        self.resolver = resolver
        self.menus = menus
        self.page_size = max(1, int(settings.RESTAURANT_PAGE_SIZE if page_size is None else page_size))

    async def apply(self, session: Session, turn: TurnInput) -> Transition:
        handler = _HANDLERS[turn.result.intent]
        tr = await handler(self, session, turn)

        # pending order only lives while waiting for confirmation
        ctx = tr.updates.get("expected_context", session.expected_context)
        pending = tr.updates.get("pending_order", session.pending_order)
        if pending is not None and ctx != ExpectedContext.CONFIRM_ORDER:
            logger.info("STATE: dropping pending order, context moved to %s", ctx.value)
            tr.updates["pending_order"] = None

        tr.updates["last_intent"] = turn.result.intent
        for k, v in tr.updates.items():
            setattr(session, k, v)
        logger.info(
            "STATE: %s -> ctx=%s reply=%s",
            turn.result.intent.value, session.expected_context.value, tr.reply.kind,
        )
        return tr

    # -------------------------
    # helpers
    # -------------------------
    async def _menu(self, restaurant: Restaurant) -> Optional[List[MenuItem]]:
        try:
            return await asyncio.wait_for(self.menus.get(restaurant.id), timeout=self.resolver.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("CATALOG: menu for %s timed out", restaurant.id)
        except ExternalServiceError as e:
            logger.warning("CATALOG: menu for %s failed: %s", restaurant.id, e)
        except Exception:
            logger.warning("CATALOG: menu for %s failed", restaurant.id, exc_info=True)
        return None

    def _page(self, restaurants: Sequence[Restaurant], offset: int) -> List[Restaurant]:
        return list(restaurants[offset:offset + self.page_size])

    def _list_transition(self, restaurants: Sequence[Restaurant], offset: int, location: str) -> Transition:
        page = self._page(restaurants, offset)
        more = len(restaurants) > offset + self.page_size
        ctx = ExpectedContext.SHOW_MORE_OPTIONS if more else ExpectedContext.SELECT_RESTAURANT
        text = f"Restaurants in {location}: {_numbered(page, offset)}."
        text += " Say 'more' to see more, or pick one." if more else " Which one?"
        return Transition(
            ReplyCore(
                "restaurant_list",
                text,
                {
                    "location": location,
                    "restaurants": [r.to_dict() for r in page],
                    "offset": offset,
                    "total": len(restaurants),
                    "has_more": more,
                },
            ),
            {
                "expected_context": ctx,
                "last_restaurants_list": list(restaurants),
                "list_offset": offset,
            },
        )

    def _selected(self, r: Restaurant) -> Transition:
        return Transition(
            ReplyCore("restaurant_selected", f"{r.name} it is. What would you like to order?", {"restaurant": r.to_dict()}),
            {
                "last_restaurant": r,
                "expected_context": ExpectedContext.NONE,
                "last_restaurants_list": [],
                "list_offset": 0,
            },
        )

    async def _target_restaurant(self, session: Session, turn: TurnInput) -> Optional[Restaurant]:
        name = turn.result.slots.get("restaurant_name")
        if name:
            if session.last_restaurants_list:
                sel = select_from_list(name, session.last_restaurants_list)
                if sel is not None:
                    return sel.restaurant
            found = await self.resolver.find_restaurant_by_name(name)
            if found is not None:
                return found
        return session.last_restaurant

    # -------------------------
    # handlers
    # -------------------------
    async def _find_nearby(self, session: Session, turn: TurnInput) -> Transition:
        slots = turn.result.slots
        location = slots.get("location") or turn.location_hint or session.last_location
        cuisine = slots.get("cuisine")
        if not location:
            return Transition(
                ReplyCore("ask_location", "Where are you? Tell me a city or area.", {"cuisine": cuisine}),
            )

        res = await self.resolver.find_restaurants_by_location(location, cuisine, session, near=turn.near)
        updates: Dict[str, Any] = {"location_cache": session.location_cache}

        if res.status == LocationStatus.UNAVAILABLE:
            return Transition(
                ReplyCore("catalog_unavailable", "I can't reach the restaurant list right now. Please try again.",
                          {"location": res.location}),
                updates,
            )

        if res.status == LocationStatus.NO_RESULTS:
            updates["last_location"] = location
            text = f"I found nothing in {location}."
            if res.suggestions:
                text += " Nearby: " + ", ".join(res.suggestions) + "."
            return Transition(
                ReplyCore("no_restaurants", text, {
                    "location": location,
                    "cuisine_tags": list(res.cuisine_tags),
                    "suggestions": list(res.suggestions),
                }),
                updates,
            )

        updates["last_location"] = location
        found = list(res.restaurants)
        if len(found) == 1:
            tr = self._selected(found[0])
            tr.updates.update(updates)
            return tr

        tr = self._list_transition(found, 0, location)
        tr.updates.update(updates)
        return tr

    async def _show_more(self, session: Session, turn: TurnInput) -> Transition:
        lst = session.last_restaurants_list
        if not lst:
            return Transition(ReplyCore("nothing_to_show", "There is no list to continue. Where should I look?"))
        offset = session.list_offset + self.page_size
        if offset >= len(lst):
            return Transition(
                ReplyCore("end_of_list", "That's all of them. Which one would you like?", {"total": len(lst)}),
                {"expected_context": ExpectedContext.SELECT_RESTAURANT},
            )
        return self._list_transition(lst, offset, session.last_location or "")

    async def _select_restaurant(self, session: Session, turn: TurnInput) -> Transition:
        lst = session.last_restaurants_list
        idx = turn.result.slots.get("restaurant_index")
        if isinstance(idx, int) and 0 <= idx < len(lst):
            return self._selected(lst[idx])

        name = turn.result.slots.get("restaurant_name")
        if lst:
            sel = select_from_list(name or turn.text, lst)
            if sel is not None:
                return self._selected(sel.restaurant)
        if name:
            found = await self.resolver.find_restaurant_by_name(name)
            if found is not None:
                return self._selected(found)
            return Transition(ReplyCore("restaurant_not_found", f"I don't know a restaurant called {name}.", {"query": name}))

        if lst:
            return Transition(
                ReplyCore("ask_select", "Which one? Say a number or a name.", {"total": len(lst)}),
                {"expected_context": ExpectedContext.SELECT_RESTAURANT},
            )
        return Transition(ReplyCore("nothing_to_select", "There is nothing to choose from yet. Where should I look?"))

    async def _menu_request(self, session: Session, turn: TurnInput) -> Transition:
        r = await self._target_restaurant(session, turn)
        if r is None:
            return Transition(ReplyCore("ask_restaurant", "Which restaurant's menu would you like?"))
        menu = await self._menu(r)
        if menu is None:
            return Transition(ReplyCore("catalog_unavailable", "I can't load that menu right now.", {"restaurant": r.to_dict()}))
        available = [m for m in menu if m.available]
        names = ", ".join(m.name for m in available[:10])
        return Transition(
            ReplyCore("menu", f"{r.name} has: {names}." if names else f"{r.name} has nothing available right now.", {
                "restaurant": r.to_dict(),
                "items": [{"id": m.id, "name": m.name, "price": m.price, "sizes": list(m.sizes)} for m in available],
            }),
            {"last_restaurant": r},
        )

    async def _create_order(self, session: Session, turn: TurnInput) -> Transition:
        r = await self._target_restaurant(session, turn)
        if r is None:
            return Transition(ReplyCore("ask_restaurant", "Which restaurant should I order from?"))
        menu = await self._menu(r)
        if menu is None:
            return Transition(ReplyCore("catalog_unavailable", "I can't load the menu right now.", {"restaurant": r.to_dict()}))

        parsed = OrderParser(menu).parse(turn.text)
        results = validate_order(parsed.candidates, menu)
        if not results:
            return Transition(ReplyCore("order_clarify", "What would you like to order?", {"reason": ValidationReason.NOT_FOUND.value,
                                                                                          "suggestions": []}))
        issue: Optional[ValidationResult] = next((v for v in results if not v.ok), None)
        if issue is not None:
            logger.info("ORDER_PARSE: clarify %s (%s)", issue.reason.value, issue.as_error() or issue.dish)
            return Transition(
                ReplyCore("order_clarify", _CLARIFY_TEXT[issue.reason], {
                    "reason": issue.reason.value,
                    "dish": issue.dish,
                    "query": issue.candidate.phrase or issue.candidate.segment,
                    "suggestions": list(issue.suggestions),
                    "accepted": [v.item.to_dict() for v in results if v.ok and v.item is not None],
                }),
            )

        if session.pending_order is not None and session.pending_order.restaurant_id == r.id:
            pending = copy.deepcopy(session.pending_order)
        else:
            pending = Order(restaurant_id=r.id, restaurant_name=r.name)
        pending.items.extend(v.item for v in results if v.item is not None)

        return Transition(
            ReplyCore("order_pending", f"{_order_line(pending)}. Shall I add it?", {"order": pending.to_dict()}),
            {
                "pending_order": pending,
                "expected_context": ExpectedContext.CONFIRM_ORDER,
                "last_restaurant": r,
            },
        )

    async def _confirm_order(self, session: Session, turn: TurnInput) -> Transition:
        pending = session.pending_order
        if pending is None or pending.is_empty():
            return Transition(
                ReplyCore("nothing_to_confirm", "There is nothing waiting for confirmation.", {"cart": session.cart.to_dict()}),
                {"expected_context": ExpectedContext.NONE},
            )
        cart = copy.deepcopy(session.cart)
        cart.extend(pending)
        return Transition(
            ReplyCore("order_confirmed", f"Added. Cart total {cart.total:.2f}.", {
                "added": pending.to_dict(),
                "added_total": pending.total,
                "cart": cart.to_dict(),
            }),
            {"cart": cart, "pending_order": None, "expected_context": ExpectedContext.NONE},
        )

    async def _cancel_order(self, session: Session, turn: TurnInput) -> Transition:
        had = session.pending_order is not None
        return Transition(
            ReplyCore("order_cancelled", "Okay, cancelled." if had else "Okay.", {"had_pending": had}),
            {"pending_order": None, "expected_context": ExpectedContext.NONE},
        )

    async def _change_restaurant(self, session: Session, turn: TurnInput) -> Transition:
        return Transition(
            ReplyCore("restaurant_cleared", "Sure, let's pick another restaurant.", {"last_location": session.last_location}),
            {"pending_order": None, "expected_context": ExpectedContext.NONE, "last_restaurant": None},
        )

    async def _recommend(self, session: Session, turn: TurnInput) -> Transition:
        r = session.last_restaurant
        if r is not None:
            menu = await self._menu(r) or []
            picks = [m for m in menu if m.available][:3]
            if picks:
                return Transition(ReplyCore(
                    "recommendation",
                    f"At {r.name} try: " + ", ".join(m.name for m in picks) + ".",
                    {"restaurant": r.to_dict(), "items": [m.name for m in picks]},
                ))
        if session.last_restaurants_list:
            top = session.last_restaurants_list[:3]
            return Transition(ReplyCore(
                "recommendation",
                "Good picks nearby: " + ", ".join(x.name for x in top) + ".",
                {"restaurants": [x.to_dict() for x in top]},
            ))
        return Transition(ReplyCore("ask_location", "Tell me where you are and I'll suggest something."))

    async def _confirm(self, session: Session, turn: TurnInput) -> Transition:
        return Transition(ReplyCore("ack", "Okay. What would you like to do next?"))

    async def _deny(self, session: Session, turn: TurnInput) -> Transition:
        return Transition(ReplyCore("ack", "No problem. Anything else?"))

    async def _smalltalk(self, session: Session, turn: TurnInput) -> Transition:
        return Transition(ReplyCore("smalltalk", "Hi! I can find restaurants and take your order."))

    async def _unknown(self, session: Session, turn: TurnInput) -> Transition:
        return Transition(ReplyCore("fallback", "Sorry, I didn't get that. You can ask for restaurants nearby or order a dish."))


_HANDLERS: Dict[Intent, Handler] = {
    Intent.FIND_NEARBY: DialogueStateMachine._find_nearby,
    Intent.SHOW_MORE_OPTIONS: DialogueStateMachine._show_more,
    Intent.SELECT_RESTAURANT: DialogueStateMachine._select_restaurant,
    Intent.MENU_REQUEST: DialogueStateMachine._menu_request,
    Intent.CREATE_ORDER: DialogueStateMachine._create_order,
    Intent.CONFIRM_ORDER: DialogueStateMachine._confirm_order,
    Intent.CANCEL_ORDER: DialogueStateMachine._cancel_order,
    Intent.CHANGE_RESTAURANT: DialogueStateMachine._change_restaurant,
    Intent.RECOMMEND: DialogueStateMachine._recommend,
    Intent.CONFIRM: DialogueStateMachine._confirm,
    Intent.DENY: DialogueStateMachine._deny,
    Intent.SMALLTALK: DialogueStateMachine._smalltalk,
    Intent.UNKNOWN: DialogueStateMachine._unknown,
}

# every intent needs a transition
assert set(_HANDLERS) == set(Intent), sorted(i.value for i in set(Intent) - set(_HANDLERS))
