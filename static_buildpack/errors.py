"""Error types and error display for the static buildpack.

Classification failures are recoverable (the buildpack declines and the
lifecycle tries other groups). Synthesis and contribution failures abort the
build phase with a diagnostic naming the failed path or value.
"""

from typing import Dict, List, Optional, Self

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()


class StaticBuildpackError(Exception):
    """Base exception class for static buildpack errors."""

    def __init__(self: Self, message: str, suggestions: Optional[List[str]] = None) -> None:
        """Initialize buildpack error.

        Args:
            message: The error message to display.
            suggestions: Optional list of recovery suggestions.
        """
        super().__init__(message)
        self.message = message
        self.suggestions = suggestions or []


class ClassificationError(StaticBuildpackError):
    """Raised when no supported application layout is found."""

    def __init__(self: Self, reason: str = 'no supported layout detected',
                 suggestions: Optional[List[str]] = None) -> None:
        super().__init__(reason, suggestions)
        self.reason = reason


class ConfigSynthesisError(StaticBuildpackError):
    """Raised when the server configuration cannot be generated."""
    pass


class ConfigValidationError(ConfigSynthesisError):
    """Raised when a configuration value is malformed."""
    pass


class ContributionError(StaticBuildpackError):
    """Raised when the layer cannot be written."""

    def __init__(self: Self, message: str, path: Optional[str] = None,
                 suggestions: Optional[List[str]] = None) -> None:
        super().__init__(message, suggestions)
        self.path = path


class ErrorHandler:
    """Displays errors with recovery suggestions."""

    def __init__(self: Self) -> None:
        """Initialize the error handler."""
        self.type_suggestions: Dict[type, List[str]] = {
            ClassificationError: [
                "Add an index.html at the application root",
                "Or place the site in a public/ directory with public/index.html",
                "Or add a package.json with a \"build\" script",
            ],
            ConfigValidationError: [
                "Check the PORT and BP_STATIC_OUTPUT_DIR values",
                "Build-time variables can be set with: pack build --env NAME=VALUE",
            ],
            ConfigSynthesisError: [
                "Make sure the front-end build runs before this buildpack",
                "Check that the build writes its output to the expected directory",
                "Set BP_STATIC_OUTPUT_DIR if the build output lives elsewhere",
            ],
            ContributionError: [
                "Check free disk space in the build container",
                "Check that the layers directory is writable",
            ],
        }

    def get_suggestions(self: Self, error: Exception) -> List[str]:
        """Get recovery suggestions for an error.

        Suggestions attached to the error win over the per-type defaults.

        Args:
            error: The exception to analyze.

        Returns:
            List of recovery suggestions.
        """
        if isinstance(error, StaticBuildpackError) and error.suggestions:
            return error.suggestions

        for error_type in type(error).__mro__:
            if error_type in self.type_suggestions:
                return self.type_suggestions[error_type]

        return []

    def display_error(
        self: Self,
        error: Exception,
        context: Optional[str] = None,
        show_suggestions: bool = True
    ) -> None:
        """Display an error with formatting and suggestions.

        Args:
            error: The exception that occurred.
            context: Optional context about what was being attempted.
            show_suggestions: Whether to show recovery suggestions.
        """
        content = []

        if context:
            content.append(f"[bold]Context:[/bold] {context}")
            content.append("")

        content.append(f"[bold red]Error:[/bold red] {escape(str(error))}")

        if show_suggestions:
            suggestions = self.get_suggestions(error)
            if suggestions:
                content.append("")
                content.append("[bold blue]Suggested solutions:[/bold blue]")
                for i, suggestion in enumerate(suggestions, 1):
                    content.append(f"  {i}. {escape(suggestion)}")

        console.print(Panel(
            "\n".join(content),
            title="[bold red]Static Buildpack Error[/bold red]",
            border_style="red",
            expand=False
        ))
