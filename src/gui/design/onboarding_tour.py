"""Onboarding tour step model and static step tables.

Defines the immutable ``TourStep`` value object, step groups, normalization of
raw step payloads broadcast by pages, target de-duplication and the two static
sources of steps: the header steps (built from whichever header anchors are
live right now) and the per-route fallback table.

Everything here is pure data logic (testable headless). Anchor probing is
injected as a ``selector -> bool`` callable so this module never touches Qt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

__all__ = [
    "TourStep",
    "StepGroup",
    "RouteSteps",
    "PLACEMENTS",
    "HEADER_GROUP",
    "HEADER_ORDER",
    "DEFAULT_PAGE_ORDER",
    "ROUTE_STEPS",
    "normalize_step",
    "normalize_steps",
    "dedupe_by_target",
    "base_path",
    "group_from_path",
    "find_route_steps",
    "build_header_steps",
]

PLACEMENTS = ("top", "bottom", "left", "right", "auto")

HEADER_GROUP = "header"
HEADER_ORDER = 0
DEFAULT_PAGE_ORDER = 1

_EMPTY_STYLES: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class TourStep:
    target: str
    content: str
    title: str = ""
    placement: Optional[str] = None
    disable_beacon: bool = False
    offset: Optional[int] = None
    styles: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_STYLES)
    step_id: Optional[str] = None  # informational, pages may tag their steps


@dataclass(frozen=True)
class StepGroup:
    name: str
    order: int
    steps: Tuple[TourStep, ...] = ()


@dataclass(frozen=True)
class RouteSteps:
    pattern: str
    steps: Tuple[TourStep, ...]


def normalize_step(raw: Any) -> Optional[TourStep]:
    """Coerce a broadcast step payload into a ``TourStep``.

    Accepts ``TourStep`` instances or mappings carrying either ``target`` or
    ``selector``. Anything else yields None.
    """
    if isinstance(raw, TourStep):
        return raw
    if not isinstance(raw, Mapping):
        return None
    target = raw.get("target") or raw.get("selector")
    if not target or not isinstance(target, str):
        return None
    placement = raw.get("placement")
    if placement not in PLACEMENTS:
        placement = None
    offset = raw.get("offset")
    styles = raw.get("styles")
    return TourStep(
        target=target,
        content=str(raw.get("content", "")),
        title=str(raw.get("title", "")),
        placement=placement,
        disable_beacon=bool(raw.get("disable_beacon", raw.get("disableBeacon", False))),
        offset=int(offset) if isinstance(offset, (int, float)) else None,
        styles=MappingProxyType(dict(styles)) if isinstance(styles, Mapping) else _EMPTY_STYLES,
        step_id=raw.get("id"),
    )


def normalize_steps(raw_steps: Any) -> List[TourStep]:
    if not isinstance(raw_steps, (list, tuple)):
        return []
    out: List[TourStep] = []
    for raw in raw_steps:
        step = normalize_step(raw)
        if step is not None:
            out.append(step)
    return out


def dedupe_by_target(steps: Iterable[TourStep]) -> List[TourStep]:
    """Drop steps with an empty or already seen target (first wins)."""
    seen: set[str] = set()
    out: List[TourStep] = []
    for step in steps:
        key = step.target.strip()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(step)
    return out


def base_path(path: str | None) -> str:
    """Strip query string and trailing slashes; empty becomes ``/``."""
    p = (path or "/").split("?", 1)[0].split("#", 1)[0]
    p = p.rstrip("/")
    return p or "/"


def group_from_path(path: str | None) -> str:
    segments = [s for s in base_path(path).split("/") if s]
    return segments[0].lower() if segments else "home"


def _steps(*items: Tuple[str, str]) -> Tuple[TourStep, ...]:
    # first step of every fallback table entry skips the beacon
    return tuple(
        TourStep(target=target, content=content, disable_beacon=(i == 0))
        for i, (target, content) in enumerate(items)
    )


ROUTE_STEPS: Tuple[RouteSteps, ...] = (
    RouteSteps(
        "/",
        _steps(
            (".home-hero-section", "Bem-vindo! Destaque principal da Pedraum."),
            (".home-hero-cta", "Atalho para começar: crie uma demanda ou anuncie."),
            (".demandas-section", "Demandas recentes do mercado."),
            (".machines-section", "Vitrine de máquinas/produtos."),
            (".testimonials-section", "Depoimentos de quem já usa a plataforma."),
        ),
    ),
    RouteSteps(
        "/painel",
        _steps(
            (
                ".painel-oportunidades, [data-tour='tile-oportunidades']",
                "Veja oportunidades enviadas para você.",
            ),
            (
                ".painel-minhas-demandas, [data-tour='tile-minhas-demandas']",
                "Gerencie suas demandas publicadas.",
            ),
            (".painel-produtos, [data-tour='tile-produtos']", "Gerencie seus produtos/máquinas."),
            (".painel-servicos, [data-tour='tile-servicos']", "Gerencie seus serviços oferecidos."),
            (
                ".painel-notificacoes, [data-tour='tile-notificacoes']",
                "Notificações e novidades da sua conta.",
            ),
        ),
    ),
    RouteSteps(
        "/perfil",
        _steps(
            ("[data-tour='perfil.avatar']", "Foto e dados básicos do perfil."),
            (
                "[data-tour='perfil.atuacao']",
                "Atuação por categoria: marque o que você faz e descreva.",
            ),
            (
                "[data-tour='perfil.portfolio']",
                "Envie imagens e um PDF opcional para seu portfólio.",
            ),
            ("[data-tour='perfil.salvar']", "Clique aqui para salvar todas as alterações."),
        ),
    ),
    RouteSteps(
        "/vitrine",
        _steps(
            ('[data-tour="vitrine.filtros"]', "Refine sua busca pelos filtros principais."),
            ('[data-tour="vitrine.filtro-busca"]', "Pesquise por nome, categoria ou descrição."),
            (
                '[data-tour="vitrine.filtro-categoria"]',
                "Filtre rapidamente pela categoria do catálogo.",
            ),
            (
                '[data-tour="vitrine.filtro-estado"]',
                "Filtre por estado (depois selecione a cidade).",
            ),
            ('[data-tour="vitrine.grid"]', "Resultados da vitrine."),
            ('[data-tour="vitrine.card"]', "Este é um card de item."),
            ('[data-tour="vitrine.card.botao"]', "Abra os detalhes do item."),
            ('[data-tour="vitrine.cta-novo-produto"]', "Publique um novo produto/máquina."),
            ('[data-tour="vitrine.cta-novo-servico"]', "Ou publique um serviço."),
        ),
    ),
)


def find_route_steps(
    path: str | None, table: Sequence[RouteSteps] = ROUTE_STEPS
) -> Tuple[TourStep, ...]:
    """Fallback steps for an exact base path, else for ``/<first segment>``."""
    route = base_path(path)
    for entry in table:
        if entry.pattern == route:
            return entry.steps
    first = f"/{group_from_path(route)}"
    for entry in table:
        if entry.pattern == first:
            return entry.steps
    return ()


HEADER_REGISTER = '[data-tour="header-register"]'
HEADER_LOGIN = '[data-tour="header-login"]'
HEADER_LOGO = '[data-tour="header-logo"]'
HEADER_HAMBURGER = '[data-tour="header-hamburger"]'

_HEADER_FIRST_COPY: Dict[str, str] = {
    HEADER_REGISTER: "Crie sua conta para publicar, responder demandas e falar com compradores.",
    HEADER_LOGIN: "Entre no seu perfil para gerenciar suas publicações e contatos.",
    HEADER_LOGO: "Aqui você volta sempre para o início.",
}


def build_header_steps(exists: Callable[[str], bool]) -> List[TourStep]:
    """Build header steps from the header anchors that exist right now.

    The first step points at the register button when logged out, the
    profile/login button when present, else at the logo.
    """
    if exists(HEADER_REGISTER):
        first = HEADER_REGISTER
    elif exists(HEADER_LOGIN):
        first = HEADER_LOGIN
    else:
        first = HEADER_LOGO
    steps = [
        TourStep(target=first, content=_HEADER_FIRST_COPY[first], disable_beacon=True),
        TourStep(
            target=HEADER_LOGO,
            content="Clique no logo para voltar ao início a qualquer momento.",
        ),
        TourStep(
            target='[data-tour="header-nav-produtos"]',
            content="Vitrine: encontre máquinas, peças e serviços com filtros avançados.",
        ),
        TourStep(
            target='[data-tour="header-nav-demandas"]',
            content="Feed de Demandas: veja pedidos de compradores e ofereça soluções.",
        ),
        TourStep(
            target='[data-tour="header-nav-painel"]',
            content="Painel: gerencie suas publicações, contatos e notificações.",
        ),
        TourStep(
            target=HEADER_HAMBURGER,
            content="No celular, use este menu para navegar rapidamente por toda a plataforma.",
        ),
    ]
    return dedupe_by_target(steps)
