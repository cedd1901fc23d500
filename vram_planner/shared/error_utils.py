from vram_planner.shared.errors import ComputationError, InvalidInputError


class ErrorUtils:
    @staticmethod
    def format_error_response(message: str, error_type: str) -> dict:
        """
        Formats a consistent error response dictionary.

        Args:
            message: The error message to include in the response.
            error_type: The type of error (e.g., "planning_error", "invalid_input").

        Returns:
            A dictionary with the error details.
        """
        return {
            "error": {
                "message": message,
                "type": error_type
            }
        }

    @staticmethod
    def from_exception(context: str, error: Exception, default_type: str) -> dict:
        """Error response for an exception, typed by planner error class when known."""
        if isinstance(error, InvalidInputError):
            error_type = "invalid_input"
        elif isinstance(error, ComputationError):
            error_type = "computation_error"
        else:
            error_type = default_type
        return ErrorUtils.format_error_response(f"{context}: {str(error)}", error_type)
