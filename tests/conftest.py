import os

import pytest

import offliner

ORIGIN = "https://mani.news"


def make_transport() -> offliner.MockAsyncTransport:
    """A transport that serves every precached path of the default configuration."""
    transport = offliner.MockAsyncTransport()
    for path in offliner.DEFAULT_PRECACHE:
        transport.add_route(path, f"static {path}")
    return transport


@pytest.fixture()
def origin() -> str:
    return ORIGIN


@pytest.fixture(params=["asyncio", "trio"])
def anyio_backend(request):
    return request.param


@pytest.fixture()
def transport() -> offliner.MockAsyncTransport:
    return make_transport()


@pytest.fixture()
def config() -> offliner.ControllerConfig:
    return offliner.ControllerConfig(origin=ORIGIN)


@pytest.fixture()
def registration() -> offliner.Registration:
    return offliner.Registration()


@pytest.fixture()
async def controller(transport, config, registration) -> offliner.AsyncOfflineController:
    """An installed and active controller, with the install requests forgotten."""
    controller = offliner.AsyncOfflineController(
        config, registration=registration, network=offliner.AsyncNetwork(transport)
    )
    await registration.register(controller)
    transport.requests.clear()
    return controller


@pytest.fixture()
def use_temp_dir(tmpdir):
    cur_dir = os.getcwd()
    os.chdir(tmpdir)
    yield
    os.chdir(cur_dir)
