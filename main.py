import logging
import os

from rich.logging import RichHandler
from rich.pretty import pprint

from cmdtree import *

logging.basicConfig(
    level=os.environ.get("CMDTREE_LOG", "WARNING").upper(),
    format="%(message)s",
    handlers=[RichHandler(show_path=False)],
)

state = {}


@group(version="0.1.0", config=Config(colorful=True))
def gcloud(*, quiet=Flag("-q --quiet", descr="disable all interactive prompts")):
    """Manage Google Cloud Platform resources"""
    state["quiet"] = quiet


@gcloud.command
def version():
    """print version information"""
    pprint(state)


@gcloud.command
def info(
        *,
        anonymize=Flag("--anonymize", descr="minimize any personal information"),
        run_diagnostics=Flag("--run-diagnostics", descr="run diagnostics"),
        show_log=Flag("--show-log", descr="print the contents of the last log file"),
):
    """display information about the environment"""
    pprint(state | {"anonymize": anonymize, "run_diagnostics": run_diagnostics, "show_log": show_log})


@gcloud.group
def run(platform=Option("--platform", descr="target platform for running commands")):
    """Manage your Cloud Run applications"""
    state["platform"] = platform


@run.command
def deploy(
        service=Positional("SERVICE", descr="name of the service to deploy"),
        /,
        image=Option("--image", descr="name of the image to deploy"),
):
    """Deploy a container to Cloud Run"""
    pprint(state | {"image": image, "service": service})


@gcloud.command
def cp(
        sources=Positional("SOURCE", nargs="+"),
        dest=Positional("DEST"),
        /,
        *,
        dereference=Flag("-L --dereference", descr="always follow symbolic links in SOURCE"),
):
    """Copy SOURCE to DEST, or multiple SOURCE(s) to DEST"""
    pprint({"sources": sources, "dest": dest, "dereference": dereference})


if __name__ == '__main__':
    invoke(gcloud)
