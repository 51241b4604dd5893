import datetime
import inspect
import logging.config
import typing as t

from .logging import TraceLogLevelLogger

TimestampProvider = t.Callable[..., datetime.datetime]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def trace(msg: str, *args: t.Any, **kwargs: t.Any):
    if len(logging.root.handlers) == 0:
        logging.basicConfig()
    t.cast(TraceLogLevelLogger, logging.root).trace(msg, *args, **kwargs)


class LoggingProvider(object):
    Function: t.Final[t.Literal["fn"]] = "fn"
    Class: t.Final[t.Literal["cls"]] = "cls"
    Module: t.Final[t.Literal["mod"]] = "mod"

    def __init__(self, config: dict[str, t.Any], debug: bool):
        LoggingProvider.create_trace_loglevel()
        logging.config.dictConfig(config)
        if debug:
            self.capture_warnings(True)

    @staticmethod
    def create_trace_loglevel():
        """
        Create a log level TRACE = 5
        """
        logging.setLoggerClass(TraceLogLevelLogger)
        logging.addLevelName(5, "TRACE")
        logging.TRACE = 5  # pyright: ignore [reportAttributeAccessIssue]
        logging.trace = trace  # pyright: ignore [reportAttributeAccessIssue]

    @classmethod
    def get_logger(
        cls, scope: t.Literal["mod", "cls", "fn"] = "mod", name: str | None = None, n_frames: int = 1
    ) -> TraceLogLevelLogger:
        """
        Return a logger named after the calling module, class or function; the
        caller is found `n_frames` up the stack
        """
        if name:
            return t.cast(TraceLogLevelLogger, logging.getLogger(name))

        stack = inspect.stack()
        frame = stack[n_frames]
        match scope:
            case cls.Module:
                name = frame.frame.f_globals["__name__"]

            case cls.Function:
                mod = frame.frame.f_globals["__name__"]
                owner = frame.frame.f_locals.get("self")
                if owner is not None:
                    name = f"{mod}.{owner.__class__.__name__}.{frame.function}"
                else:
                    name = f"{mod}.{frame.function}"

            case cls.Class:
                scope_locals = frame.frame.f_locals
                if "self" in scope_locals:
                    owner_cls = scope_locals["self"].__class__
                elif "cls" in scope_locals and isinstance(scope_locals["cls"], type):
                    owner_cls = scope_locals["cls"]
                else:
                    raise RuntimeError("could not determine class")
                name = f"{owner_cls.__module__}.{owner_cls.__name__}"

        return t.cast(TraceLogLevelLogger, logging.getLogger(name))

    @staticmethod
    def capture_warnings(capture: bool):
        logging.captureWarnings(capture)
