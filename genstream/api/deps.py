from starlette.requests import HTTPConnection

from genstream.services.gateway import GenerationGateway


# works for both http requests and websockets
def get_gateway(conn: HTTPConnection) -> GenerationGateway:
    return conn.app.state.gateway
