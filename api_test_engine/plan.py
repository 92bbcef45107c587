"""
Test plan parser for declarative engine trees.

Handles the JSON plan format, validates it with pydantic and turns it into
an ``Engine`` ready to run.
"""

from collections.abc import Callable, Iterable
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from api_test_engine.config import (
    DEFAULT_ENGINE_NAME,
    DEFAULT_SUCCESS_STATUS,
    DEFAULT_TIMEOUT,
    PLAN_EXTENSIONS,
)
from api_test_engine.core.containers import Module, Site
from api_test_engine.core.endpoint import Endpoint
from api_test_engine.core.engine import Engine
from api_test_engine.core.node import HTTPMethod

logger = logging.getLogger(__name__)


class PlanError(Exception):
    """Raised when a test plan cannot be loaded."""

    pass


class EndpointConfig(BaseModel):
    """Configuration for a single endpoint."""

    path: str = Field(..., description="Path fragment appended to the module path")
    method: HTTPMethod = Field(default=HTTPMethod.GET, description="HTTP method")
    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="Human-readable description")
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, str] = Field(default_factory=dict)
    body: Any = Field(default=None, description="Request payload, JSON encoded unless a string")
    expect_status: list[int] = Field(
        default_factory=lambda: [DEFAULT_SUCCESS_STATUS],
        description="Status codes that count as a pass",
    )

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class ModuleConfig(BaseModel):
    """Configuration for a module and its endpoints."""

    path: str = Field(default="", description="Path fragment appended to the site path")
    name: str = ""
    description: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, str] = Field(default_factory=dict)
    endpoints: list[EndpointConfig] = Field(default_factory=list)


class SiteConfig(BaseModel):
    """Configuration for a site and its modules."""

    path: str = Field(default="", description="Path fragment appended to the engine path")
    name: str = ""
    description: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, str] = Field(default_factory=dict)
    modules: list[ModuleConfig] = Field(default_factory=list)


class PlanConfig(BaseModel):
    """Complete test plan, one per engine."""

    name: str = Field(default=DEFAULT_ENGINE_NAME, description="Unique name for the plan")
    description: str = DEFAULT_ENGINE_NAME
    path: str = Field(default="", description="Leading path fragment, usually the base URL")
    headers: dict[str, str] = Field(default_factory=dict)
    query_params: dict[str, str] = Field(default_factory=dict)
    sites: list[SiteConfig] = Field(default_factory=list)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Transport timeout")


def status_verifier(statuses: Iterable[int]) -> Callable[[Any], bool]:
    """Build a verify predicate accepting the given status codes."""
    accepted = frozenset(statuses)

    def verify(response: Any) -> bool:
        return response.status_code in accepted

    return verify


def build_engine(plan: PlanConfig) -> Engine:
    """Build an engine tree from a plan.

    Args:
        plan: Validated plan

    Returns:
        Engine with one site, module and endpoint per plan entry
    """
    sites = []
    for site_config in plan.sites:
        modules = []
        for module_config in site_config.modules:
            endpoints = [
                Endpoint(
                    path=ep.path,
                    method=ep.method,
                    headers=ep.headers,
                    query_params=ep.query_params,
                    verify=status_verifier(ep.expect_status),
                    body=ep.body,
                    name=ep.name,
                    description=ep.description,
                )
                for ep in module_config.endpoints
            ]
            modules.append(
                Module(
                    path=module_config.path,
                    headers=module_config.headers,
                    query_params=module_config.query_params,
                    endpoints=endpoints,
                    name=module_config.name,
                    description=module_config.description,
                )
            )
        sites.append(
            Site(
                path=site_config.path,
                headers=site_config.headers,
                query_params=site_config.query_params,
                modules=modules,
                name=site_config.name,
                description=site_config.description,
            )
        )

    return Engine(
        path=plan.path,
        headers=plan.headers,
        query_params=plan.query_params,
        sites=sites,
        name=plan.name,
        description=plan.description,
    )


class PlanLoader:
    """Loads and validates test plans from JSON files."""

    def __init__(self):
        """Initialize plan loader."""
        self.loaded_plans: dict[str, PlanConfig] = {}

    def load_plan_file(self, plan_path: str | Path) -> PlanConfig:
        """Load a test plan from a JSON file.

        Args:
            plan_path: Path to JSON plan file

        Returns:
            Parsed and validated plan

        Raises:
            PlanError: If the file is missing, not JSON, or not a valid plan
        """
        plan_path = Path(plan_path)

        if not plan_path.exists():
            raise PlanError(f"Plan file not found: {plan_path}")

        try:
            with plan_path.open("r", encoding="utf-8") as f:
                plan_data = json.load(f)
        except json.JSONDecodeError as e:
            raise PlanError(f"Invalid JSON in {plan_path}: {e.msg}") from e
        except OSError as e:
            raise PlanError(f"Could not read {plan_path}: {e}") from e

        try:
            plan = PlanConfig.model_validate(plan_data)
        except ValidationError as e:
            raise PlanError(f"Invalid plan in {plan_path}: {e}") from e

        self.loaded_plans[plan.name] = plan
        return plan

    def load_plan_directory(self, plan_dir: str | Path) -> dict[str, PlanConfig]:
        """Load all test plans from a directory.

        Files that fail to load are logged and skipped.

        Args:
            plan_dir: Directory containing JSON plan files

        Returns:
            Dictionary mapping plan names to plans

        Raises:
            PlanError: If the directory doesn't exist
        """
        plan_dir = Path(plan_dir)

        if not plan_dir.is_dir():
            raise PlanError(f"Plan directory not found: {plan_dir}")

        plans = {}
        for plan_file in sorted(plan_dir.iterdir()):
            if plan_file.suffix not in PLAN_EXTENSIONS:
                continue
            try:
                plan = self.load_plan_file(plan_file)
                plans[plan.name] = plan
            except PlanError as e:
                logger.warning(f"Failed to load {plan_file}: {e}")

        return plans

    def validate_plan(self, plan: PlanConfig) -> list[str]:
        """Check a plan for common mistakes.

        Args:
            plan: Plan to check

        Returns:
            List of warnings, empty when nothing looks wrong
        """
        issues = []

        if not plan.sites:
            issues.append("No sites specified")

        seen_names: set[str] = set()
        for site in plan.sites:
            if not site.modules:
                issues.append(f"Site '{site.name or site.path}' has no modules")
            for module in site.modules:
                if not module.endpoints:
                    issues.append(f"Module '{module.name or module.path}' has no endpoints")
                for endpoint in module.endpoints:
                    if endpoint.name:
                        if endpoint.name in seen_names:
                            issues.append(f"Duplicate endpoint name '{endpoint.name}'")
                        seen_names.add(endpoint.name)
                    if endpoint.path and not endpoint.path.startswith("/"):
                        issues.append(
                            f"Endpoint path '{endpoint.path}' does not start with '/'; "
                            "fragments are joined without separators"
                        )
                    if not endpoint.expect_status:
                        issues.append(
                            f"Endpoint '{endpoint.name or endpoint.path}' accepts no status"
                        )

        if plan.path and not plan.path.startswith(("http://", "https://")):
            issues.append(f"Plan path '{plan.path}' has no http:// or https:// scheme")

        return issues

    def get_plan(self, name: str) -> PlanConfig | None:
        """Get a loaded plan by name."""
        return self.loaded_plans.get(name)

    def list_loaded_plans(self) -> list[str]:
        """Get list of loaded plan names."""
        return list(self.loaded_plans.keys())


def create_sample_plan() -> dict[str, Any]:
    """Create a sample test plan for reference.

    Returns:
        Sample plan dictionary
    """
    return {
        "name": "httpbin_smoke",
        "description": "Smoke test against httpbin",
        "path": "https://httpbin.org",
        "headers": {"Accept": "application/json"},
        "sites": [
            {
                "name": "httpbin",
                "path": "",
                "headers": {"User-Agent": "api-test-engine"},
                "modules": [
                    {
                        "name": "methods",
                        "path": "",
                        "endpoints": [
                            {"name": "get", "path": "/get", "method": "GET"},
                            {
                                "name": "post",
                                "path": "/post",
                                "method": "POST",
                                "body": {"hello": "world"},
                            },
                        ],
                    },
                    {
                        "name": "status",
                        "path": "/status",
                        "endpoints": [
                            {
                                "name": "not_found",
                                "path": "/404",
                                "method": "GET",
                                "expect_status": [404],
                            }
                        ],
                    },
                ],
            }
        ],
        "timeout": 30,
    }


def save_sample_plan(output_path: str | Path) -> None:
    """Save a sample plan to a file for reference.

    Args:
        output_path: Path where to save the sample plan
    """
    output_path = Path(output_path)

    with output_path.open("w", encoding="utf-8") as f:
        json.dump(create_sample_plan(), f, indent=2)

    logger.info(f"Sample plan saved to: {output_path}")
