"""User-facing error messages and translation of raw backend errors."""

from src.services.results import ErrorCode

ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "No se encontro el recurso solicitado",
    ErrorCode.UNAUTHORIZED: "No tienes permiso para realizar esta accion",
    ErrorCode.FORBIDDEN: "Acceso denegado",
    ErrorCode.VALIDATION_ERROR: "Los datos proporcionados no son validos",
    ErrorCode.NETWORK_ERROR: "Error de conexion. Verifica tu internet",
    ErrorCode.SERVER_ERROR: "Error del servidor. Intenta de nuevo mas tarde",
    ErrorCode.UNKNOWN: "Ocurrio un error inesperado",
}

DUPLICATE_RECIPE_MESSAGE = "Ya tienes una receta con ese nombre"
RECIPE_NOT_OWNED_MESSAGE = "No tienes permiso para editar esta receta"

# Checked in order: exact match first, then case-insensitive substring.
ERROR_TRANSLATIONS: dict[str, str] = {
    # Auth
    "Invalid login credentials": "Email o contrasena incorrectos",
    "Incorrect email or password": "Email o contrasena incorrectos",
    "Email already registered": "Este email ya esta registrado",
    "Password should be at least 6 characters": "La contrasena debe tener al menos 6 caracteres",
    "User not found": "Usuario no encontrado",
    "Token has expired or is invalid": "El enlace ha expirado o es invalido",
    "New password should be different from the old password": (
        "La nueva contrasena debe ser diferente a la anterior"
    ),
    "Auth session missing!": "Sesion expirada. Inicia sesion de nuevo",
    "Invalid authentication credentials": "Sesion expirada. Inicia sesion de nuevo",
    "Not authenticated": "Sesion expirada. Inicia sesion de nuevo",
    # Database
    "duplicate key value violates unique constraint": "Este registro ya existe",
    "UNIQUE constraint failed": "Este registro ya existe",
    "violates foreign key constraint": "No se puede eliminar porque tiene datos relacionados",
    "null value in column": "Falta un campo requerido",
    "value too long for type": "El texto es demasiado largo",
    "invalid input syntax": "Formato de datos invalido",
    # Storage
    "The resource already exists": "El archivo ya existe",
    "Bucket not found": "Error de configuracion del servidor",
    "Object not found": "Archivo no encontrado",
    "Payload too large": "El archivo es demasiado grande",
    "Invalid key": "Nombre de archivo invalido",
    "Permission denied": "No tienes permiso para esta accion",
    # Network
    "Failed to fetch": "Error de conexion. Verifica tu internet",
    "ConnectError": "No se pudo conectar al servidor",
    "NetworkError": "Error de red. Intenta de nuevo",
    # Generic HTTP
    "Internal Server Error": "Error del servidor. Intenta mas tarde",
    "Service Unavailable": "Servicio no disponible. Intenta mas tarde",
    "Bad Request": "Solicitud invalida",
    "Unauthorized": "No autorizado",
    "Forbidden": "Acceso denegado",
    "Not Found": "No encontrado",
    "Request Timeout": "La solicitud tardo demasiado",
    "Too Many Requests": "Demasiadas solicitudes. Espera un momento",
}

GENERIC_ERROR_MESSAGE = "Ha ocurrido un error"


def translate_error(error: BaseException | str | None) -> str:
    """Translate a raw backend error into a Spanish message.

    Falls back to the original text, with known library prefixes cleaned up.
    """
    message = str(error) if error is not None else ""

    if message in ERROR_TRANSLATIONS:
        return ERROR_TRANSLATIONS[message]

    lowered = message.lower()
    for pattern, translation in ERROR_TRANSLATIONS.items():
        if pattern.lower() in lowered:
            return translation

    if message.startswith("AuthApiError:"):
        return message.removeprefix("AuthApiError:").strip()
    if message.startswith(("IntegrityError", "OperationalError", "DatabaseError")):
        return "Error en la base de datos"
    if message.startswith("StorageError:"):
        return "Error al procesar el archivo"

    return message or GENERIC_ERROR_MESSAGE


def get_error_message(error: str | None, code: ErrorCode | str | None = None) -> str:
    """Resolve the message to show for a failure: code message, else translated raw text."""
    if code is not None:
        try:
            return ERROR_MESSAGES[ErrorCode(code)]
        except ValueError:
            pass
    if not error:
        return ERROR_MESSAGES[ErrorCode.UNKNOWN]
    return translate_error(error)
