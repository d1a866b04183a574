import ckbdeploy
import pyckb
import pytest
import typing


def genesis() -> typing.Dict:
    # Just enough of a genesis block for ckbdeploy.config.system.
    secp256k1_type = pyckb.core.Script(pyckb.core.type_id_code_hash, 1, bytearray([0x11] * 32))
    return {
        'transactions': [
            {
                'hash': f'0x{bytearray([0x01] * 32).hex()}',
                'outputs': [
                    pyckb.core.CellOutput(0, secp256k1_type, None).json(),
                    pyckb.core.CellOutput(0, secp256k1_type, secp256k1_type).json(),
                ],
                'outputs_data': ['0x', '0x'],
            },
            {
                'hash': f'0x{bytearray([0x02] * 32).hex()}',
                'outputs': [],
                'outputs_data': [],
            },
        ],
    }


class Node:
    # An in-memory node that serves both the rpc and the indexer methods used by ckbdeploy.

    def __init__(self, prikey: int, capacities: typing.List[int]) -> None:
        self.system = ckbdeploy.config.system(self)
        self.sender = ckbdeploy.deployer.Sender(pyckb.core.PriKey(prikey), self.system)
        self.cells = []
        for i, capacity in enumerate(capacities):
            out_point = pyckb.core.OutPoint(bytearray([0xcc] * 32), i)
            output = pyckb.core.CellOutput(capacity, self.sender.lock, None)
            self.cells.append((out_point, output))
        self.dead = set()
        self.sent = []
        self.waited = []
        self.pages = 0

    def get_block_by_number(self, block_number: str) -> typing.Dict:
        if block_number == '0x0':
            return genesis()
        assert block_number == '0x1'
        return {
            'transactions': [{
                'hash': f'0x{bytearray([0xcc] * 32).hex()}',
                'outputs': [e[1].json() for e in self.cells],
                'outputs_data': ['0x' for _ in self.cells],
            }],
        }

    def get_cells(self, search_key: typing.Dict, order: str, limit: str, after: typing.Optional[str]) -> typing.Dict:
        assert search_key['script'] == self.sender.lock.json()
        assert order == 'asc'
        self.pages += 1
        start = int(after, 16) if after else 0
        stop = start + int(limit, 16)
        objects = [{'out_point': e[0].json(), 'output': e[1].json()} for e in self.cells[start:stop]]
        return {'objects': objects, 'last_cursor': hex(min(stop, len(self.cells)))}

    def get_live_cell(self, out_point: typing.Dict, with_data: bool) -> typing.Dict:
        return {'status': 'dead' if out_point['index'] in self.dead else 'live'}

    def get_tip_block_number(self) -> str:
        return '0x1'

    def send_transaction(self, transaction: typing.Dict, outputs_validator: typing.Optional[str] = None) -> str:
        self.sent.append(transaction)
        return f'0x{pyckb.core.Transaction.json_decode(transaction).raw.hash().hex()}'

    def wait(self, tx_hash: str) -> None:
        self.waited.append(tx_hash)


@pytest.fixture
def node_factory() -> typing.Callable[..., Node]:
    def make(capacities: typing.List[int], prikey: int = 1) -> Node:
        return Node(prikey, capacities)
    return make
