"""Build plan negotiation.

The detect phase declares what this buildpack provides and what it needs
from its companions. Names must match the provisions of the companion
buildpacks exactly: the nginx buildpack provides ``nginx``, the npm install
buildpack provides ``node_modules``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import toml

from .layouts import AppLayout, LayoutKind

logger = logging.getLogger(__name__)

WEB_SERVER = 'nginx'
STATIC = 'static'
BUILD_TOOL = 'node_modules'


@dataclass(frozen=True)
class Provision:
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name}


@dataclass(frozen=True)
class Requirement:
    """A capability that some buildpack in the group must provide."""

    name: str
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {'name': self.name}
        if self.metadata:
            entry['metadata'] = dict(sorted(self.metadata.items()))
        return entry


@dataclass(frozen=True)
class BuildPlan:
    provides: List[Provision]
    requires: List[Requirement]

    def requirement_names(self) -> List[str]:
        return [requirement.name for requirement in self.requires]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'provides': [provision.to_dict() for provision in self.provides],
            'requires': [requirement.to_dict() for requirement in self.requires],
        }

    def to_toml(self) -> str:
        return toml.dumps(self.to_dict())


def plan(layout: AppLayout) -> BuildPlan:
    """
    Compute the build plan for a classified layout.

    Every layout needs nginx at launch and the static capability this
    buildpack provides. Built output additionally needs the front-end
    dependencies at build time, which orders the npm buildpacks first.

    Args:
        layout: Classified application layout

    Returns:
        BuildPlan with provides and requires entries
    """
    requires = [
        Requirement(WEB_SERVER, {'launch': True}),
        Requirement(STATIC),
    ]

    if layout.kind is LayoutKind.BUILT_OUTPUT:
        requires.append(Requirement(BUILD_TOOL, {'build': True}))

    return BuildPlan(provides=[Provision(STATIC)], requires=requires)


def write_plan(build_plan: BuildPlan, plan_path: Path) -> None:
    """Write the build plan TOML where the lifecycle expects it."""
    plan_path = Path(plan_path)
    plan_path.write_text(build_plan.to_toml(), encoding='utf-8')
    logger.debug(f"Wrote build plan to {plan_path}: requires {', '.join(build_plan.requirement_names())}")


def read_buildpack_plan(plan_path: Path) -> List[str]:
    """Entry names the lifecycle resolved for this buildpack's build phase."""
    plan_path = Path(plan_path)
    if not plan_path.is_file():
        return []
    data = toml.loads(plan_path.read_text(encoding='utf-8'))
    return [entry.get('name', '') for entry in data.get('entries', [])]
