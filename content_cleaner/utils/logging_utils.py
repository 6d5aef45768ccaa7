import copy
import logging

from content_cleaner.utils.colors import Colors


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that colours level names and highlights batch milestones.

    Per-item trace lines from the cleaners are dimmed so the batch summary
    stands out in a long --each-line run.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GREY,
        logging.INFO: Colors.BLUE,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED
    }

    def format(self, record):
        # Copy so other handlers (e.g. the log file) never see ANSI codes
        record = copy.copy(record)

        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"

        if isinstance(record.msg, str):
            if record.msg.startswith("Batch complete"):
                record.msg = Colors.colorize(record.msg, Colors.GREEN + Colors.BOLD)
            elif record.msg.startswith("Input truncated"):
                record.msg = Colors.colorize(record.msg, Colors.MAGENTA)
            elif record.levelno == logging.DEBUG:
                record.msg = Colors.colorize(record.msg, Colors.GREY)

        return super().format(record)
