import json
import os
import sys
from logging import (
    basicConfig,
    getLogger,
    DEBUG,
    INFO,
    WARNING,
    ERROR,
    Formatter,
    Handler,
    LogRecord,
    StreamHandler,
)
from typing import Any, Dict, List, Mapping, Optional

from azure_lb_sample.args import ArgumentParser

Json = Dict[str, Any]

SampleLogger = "azure_lb_sample"
TextFormat = "%(asctime)s|{proc}|%(levelname)5s|%(process)d|%(threadName)10s  %(message)s"
# json property -> log record attribute
JsonFields: Mapping[str, str] = {
    "timestamp": "asctime",
    "level": "levelname",
    "message": "message",
    "pid": "process",
    "thread": "threadName",
}

getLogger(SampleLogger).setLevel(INFO)
# the sdk logs every http request on INFO
getLogger("azure").setLevel(WARNING)


def add_args(arg_parser: ArgumentParser) -> None:
    group = arg_parser.add_mutually_exclusive_group()
    group.add_argument("--verbose", "-v", dest="verbose", action="store_true", default=False, help="Verbose logging")
    group.add_argument("--quiet", dest="quiet", action="store_true", default=False, help="Only log errors")


class JsonFormatter(Formatter):
    """
    Renders every log record as one json object.
    `fields` maps the json property to the attribute of the log record, `static_values` are added to every line.
    """

    def __init__(
        self,
        fields: Mapping[str, str] = JsonFields,
        time_format: str = "%Y-%m-%dT%H:%M:%S",
        static_values: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__()
        self.fields = fields
        self.time_format = time_format
        self.static_values = dict(static_values or {})

    def usesTime(self) -> bool:  # noqa: N802
        return "asctime" in self.fields.values()

    def to_json(self, record: LogRecord) -> Json:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record, self.time_format)
        js: Json = {name: getattr(record, attr, None) for name, attr in self.fields.items()}
        js.update(self.static_values)
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            js["exception"] = record.exc_text
        if record.stack_info:
            js["stack_info"] = self.formatStack(record.stack_info)
        return js

    def format(self, record: LogRecord) -> str:
        return json.dumps(self.to_json(record), default=str)


def env_flag(name: str) -> bool:
    return os.environ.get(name, "false").lower() == "true"


def log_handlers(proc: str, json_format: bool) -> List[Handler]:
    handler = StreamHandler()
    if json_format:
        handler.setFormatter(JsonFormatter(static_values={"process": proc}))
    else:
        # allow to define the log format via env var
        log_format = os.environ.get("LBSAMPLE_LOG_FORMAT", TextFormat.format(proc=proc))
        handler.setFormatter(Formatter(log_format, datefmt="%y-%m-%d %H:%M:%S"))
    return [handler]


def setup_logger(
    proc: str,
    *,
    force: bool = True,
    verbose: bool = False,
    quiet: bool = False,
    level: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure the root logger: plain text by default, json if requested or LBSAMPLE_LOG_JSON=true.
    The level of the sample loggers is taken from `level`, `verbose` or `quiet` (or the command line flags).
    """
    basicConfig(handlers=log_handlers(proc, json_format or env_flag("LBSAMPLE_LOG_JSON")), force=force)
    argv = sys.argv[1:]
    if level:
        getLogger(SampleLogger).setLevel(level)
    elif verbose or "-v" in argv or "--verbose" in argv:
        getLogger(SampleLogger).setLevel(DEBUG)
    elif quiet or "--quiet" in argv:
        getLogger().setLevel(WARNING)
        getLogger(SampleLogger).setLevel(ERROR)
