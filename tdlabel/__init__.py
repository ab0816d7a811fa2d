"""
tdlabel
=======

Печать изображений на USB-принтерах этикеток Brother серии TD-4000.

Этот пакет предоставляет:
    - Каталог поддерживаемых моделей (TD-4210D ... TD-4550DNWB, 203/300 DPI)
    - Выбор принтера по имени модели или серийному номеру USB
    - Масштабирование, бинаризацию и дизеринг (Floyd-Steinberg, Stucki, Jarvis)
    - Упаковку растровых строк и сборку потока команд (raster command mode)
    - Передачу потока через bulk endpoint (pyusb)
    - Растеризацию PDF/SVG через ImageMagick

Пример базового использования:
    >>> from tdlabel import PrintJob, PrintSettings, get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> settings = PrintSettings(label_size="102x152", copies=2)
    >>> result = PrintJob(settings).run("shipping_label.png")
    >>> logger.info(str(result))

Сборка потока без принтера:
    >>> from tdlabel import CommandBuilder, compute_max_bounds, encode, load_image, lookup
    >>>
    >>> model = lookup(0x20B6)  # TD-4410D
    >>> geometry = compute_max_bounds(model, settings.label)
    >>> encoded = encode(load_image("logo.png"), geometry, model.raster_width_pixels)
    >>> stream = CommandBuilder(encoded.label, encoded.lines).build()

Зависимости:
    Pillow, pyusb (+ libusb), ImageMagick (опционально, для PDF/SVG)
"""

import json
import logging
import logging.handlers
import os
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__author__ = "tdlabel Development Team"
__description__ = "Image printing for Brother TD-4000 series USB label printers"
__license__ = "MIT"
__python_requires__ = ">=3.10"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# =============================================================================
# ПРОВЕРКА ВЕРСИИ PYTHON
# =============================================================================

if sys.version_info < (3, 10):
    raise RuntimeError(
        f"tdlabel требует Python 3.10 или выше. "
        f"Текущая версия: {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro}"
    )

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

_LOGGER_NAMESPACE = "tdlabel"
_LOG_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s"


def _setup_logging() -> None:
    """
    Инициализировать общепакетную конфигурацию логирования.

    Настраивает логгер пакета с:
    - Консольным обработчиком (stderr) для WARNING и выше
    - Ротирующим файловым обработчиком для всех уровней, если задана
      переменная окружения TDLABEL_LOG_DIR

    Уровень логирования задаётся переменной окружения TDLABEL_LOG_LEVEL
    (DEBUG, INFO, WARNING, ERROR, CRITICAL). Функция идемпотентна.
    """
    log_level_str = os.environ.get("TDLABEL_LOG_LEVEL", "INFO").upper()
    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    log_level = log_level_map.get(log_level_str, logging.INFO)

    root_logger = logging.getLogger(_LOGGER_NAMESPACE)
    if root_logger.handlers:
        return

    root_logger.setLevel(log_level)

    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # Консольный обработчик (stderr) - WARNING и выше
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Файловый обработчик (ротирующий) - только по запросу
    log_dir_str = os.environ.get("TDLABEL_LOG_DIR")
    if log_dir_str:
        try:
            log_dir = Path(log_dir_str)
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_dir / "tdlabel.log",
                maxBytes=10 * 1024 * 1024,  # 10 МБ
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(
                f"Не удалось инициализировать файловое логирование: {e}. "
                f"Используется только консоль."
            )

    root_logger.propagate = False


def get_logger(module_name: str) -> logging.Logger:
    """
    Получить логгер в пространстве имён пакета ('tdlabel.<module_name>').

    Аргументы:
        module_name: Имя модуля, обычно `__name__`.

    Пример:
        >>> logger = get_logger(__name__)
        >>> logger.info("Принтер выбран")
    """
    if module_name == _LOGGER_NAMESPACE or module_name.startswith(_LOGGER_NAMESPACE + "."):
        return logging.getLogger(module_name)
    if module_name == "__main__":
        return logging.getLogger(f"{_LOGGER_NAMESPACE}.main")
    clean_name = module_name.lstrip(".")
    return logging.getLogger(f"{_LOGGER_NAMESPACE}.{clean_name}")


def set_console_level(level: int) -> None:
    """Изменить порог консольного обработчика (например, для --verbose)."""
    root_logger = logging.getLogger(_LOGGER_NAMESPACE)
    root_logger.setLevel(min(root_logger.level or level, level))
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, logging.FileHandler
        ):
            handler.setLevel(level)


# =============================================================================
# УПРАВЛЕНИЕ КОНФИГУРАЦИЕЙ
# =============================================================================

_DEFAULT_CONFIG: Dict[str, Any] = {
    "label_size": "102x200",
    "label_type": "d",
    "dither": "none",
    "margin_color": 0,
    "rotate": False,
    "copies": 1,
    "printer_name": None,
    "serial": None,
    "debug": False,
    "debug_dir": ".",
    "timeout_ms": 5000,
    "endpoint": 0x02,
    "interface": 0,
}


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Загрузить конфигурацию из JSON-файла или использовать настройки по умолчанию.

    Порядок поиска файла: аргумент config_path, переменная окружения
    TDLABEL_CONFIG, 'tdlabel.json' в текущем каталоге. Отсутствующий или
    повреждённый файл не является ошибкой: пишется предупреждение и
    возвращаются значения по умолчанию.

    Ключи совпадают с полями tdlabel.config.PrintSettings.

    Пример:
        >>> config = load_config()
        >>> config["label_size"]
        '102x200'
    """
    logger = get_logger(__name__)

    if config_path is None:
        config_path = os.environ.get("TDLABEL_CONFIG", "tdlabel.json")
    config_path = Path(config_path)

    config = _DEFAULT_CONFIG.copy()

    if not config_path.exists():
        logger.debug(f"Файл конфигурации {config_path} не найден. Используются значения по умолчанию.")
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)

        if not isinstance(user_config, dict):
            raise ValueError(
                f"Файл конфигурации должен содержать JSON-объект, "
                f"получен {type(user_config).__name__}"
            )

        unknown = sorted(set(user_config) - set(_DEFAULT_CONFIG))
        if unknown:
            logger.warning(f"Неизвестные ключи конфигурации проигнорированы: {', '.join(unknown)}")
        config.update({k: v for k, v in user_config.items() if k in _DEFAULT_CONFIG})

        logger.info(f"Конфигурация загружена из {config_path}")
        logger.debug(f"Конфигурация: {config}")

    except json.JSONDecodeError as e:
        logger.warning(
            f"Не удалось разобрать {config_path}: Недопустимый JSON "
            f"в строке {e.lineno}, столбце {e.colno}. "
            f"Используется конфигурация по умолчанию."
        )
    except OSError as e:
        logger.warning(
            f"Не удалось прочитать {config_path}: {e}. Используется конфигурация по умолчанию."
        )
    except ValueError as e:
        logger.warning(f"Недопустимый формат конфигурации: {e}. Используется конфигурация по умолчанию.")

    return config


def check_dependencies() -> Dict[str, bool]:
    """
    Проверить доступность зависимостей.

    Возвращает словарь: pillow, pyusb, libusb (бэкенд pyusb найден),
    imagemagick (исполняемый файл magick/convert в PATH).
    """
    dependencies: Dict[str, bool] = {}

    try:
        import PIL  # noqa: F401

        dependencies["pillow"] = True
    except ImportError:
        dependencies["pillow"] = False

    try:
        import usb.backend.libusb1

        dependencies["pyusb"] = True
        dependencies["libusb"] = usb.backend.libusb1.get_backend() is not None
    except ImportError:
        dependencies["pyusb"] = False
        dependencies["libusb"] = False

    dependencies["imagemagick"] = any(shutil.which(name) for name in ("magick", "convert"))

    return dependencies


# =============================================================================
# ПУБЛИЧНЫЙ API
# =============================================================================

from tdlabel.config import PrintSettings  # noqa: E402
from tdlabel.device.catalog import CATALOG, VENDOR_ID, DeviceModel, lookup  # noqa: E402
from tdlabel.device.selector import SelectionCriteria, select_device  # noqa: E402
from tdlabel.exceptions import LabelPrinterError  # noqa: E402
from tdlabel.job import PrintJob, PrintResult  # noqa: E402
from tdlabel.model.enums import DitherMode, LabelType, MarginColor  # noqa: E402
from tdlabel.model.label import LabelSpec, PrintGeometry, compute_max_bounds  # noqa: E402
from tdlabel.protocol.builder import CommandBuilder, build_command_stream  # noqa: E402
from tdlabel.raster.encoder import EncodedImage, encode, load_image  # noqa: E402

__all__ = [
    # Метаданные версии
    "__version__",
    "__author__",
    "__description__",
    "__license__",
    "__python_requires__",
    "VERSION_MAJOR",
    "VERSION_MINOR",
    "VERSION_PATCH",
    # Утилиты
    "get_logger",
    "set_console_level",
    "load_config",
    "check_dependencies",
    # Устройства
    "VENDOR_ID",
    "CATALOG",
    "DeviceModel",
    "lookup",
    "SelectionCriteria",
    "select_device",
    # Модель
    "LabelType",
    "DitherMode",
    "MarginColor",
    "LabelSpec",
    "PrintGeometry",
    "compute_max_bounds",
    # Растр и протокол
    "EncodedImage",
    "encode",
    "load_image",
    "CommandBuilder",
    "build_command_stream",
    # Задание печати
    "PrintSettings",
    "PrintJob",
    "PrintResult",
    "LabelPrinterError",
]

# =============================================================================
# ИНИЦИАЛИЗАЦИЯ ПАКЕТА
# =============================================================================

_setup_logging()

_logger = get_logger(__name__)
_logger.debug(f"tdlabel v{__version__} инициализирован")
_logger.debug(f"Версия Python: {sys.version}")
