import ckbdeploy.core
import ckbdeploy.error
import ckbdeploy.rpc
import itertools
import pyckb.core
import typing


class LiveCell:
    def __init__(self, out_point: pyckb.core.OutPoint, output: pyckb.core.CellOutput) -> None:
        self.out_point = out_point
        self.output = output

    def __repr__(self) -> str:
        return f'LiveCell({self.out_point!r}, {self.output.capacity})'


class Collector:
    # A strategy that yields the spendable cells of one lock script.

    def iter(self) -> typing.Iterator[LiveCell]:
        raise NotImplementedError

    def collect(self, capacity: int) -> typing.Tuple[typing.List[LiveCell], int]:
        # Take cells in the strategy's order until their total capacity reaches the request.
        cells = []
        total = 0
        for cell in self.iter():
            cells.append(cell)
            total += cell.output.capacity
            if total >= capacity:
                return cells, total
        raise ckbdeploy.error.InsufficientFundsError(f'insufficient capacity: {total} < {capacity}')


class IndexerCollector(Collector):
    limit = 1000

    def __init__(self, indexer: ckbdeploy.rpc.Client, lock: pyckb.core.Script) -> None:
        self.indexer = indexer
        self.lock = lock

    def search_key(self) -> typing.Dict:
        # Plain cells only: spending a cell with a type script or data would destroy a deployed script or a dao
        # deposit.
        return {
            'script': self.lock.json(),
            'script_type': 'lock',
            'filter': {
                'script_len_range': ['0x0', '0x1'],
                'output_data_len_range': ['0x0', '0x1'],
            },
        }

    def iter(self) -> typing.Iterator[LiveCell]:
        cursor = None
        for _ in itertools.repeat(0):
            r = self.indexer.get_cells(self.search_key(), 'asc', hex(self.limit), cursor)
            cursor = r['last_cursor']
            for e in r['objects']:
                yield LiveCell(
                    ckbdeploy.core.json_decode(pyckb.core.OutPoint, e['out_point']),
                    ckbdeploy.core.json_decode(pyckb.core.CellOutput, e['output']),
                )
            if len(r['objects']) < self.limit:
                break


class ScanCollector(Collector):
    # Walks every block from genesis to the tip. Slow, but needs nothing beyond the core rpc module.

    def __init__(self, client: ckbdeploy.rpc.Client, lock: pyckb.core.Script) -> None:
        self.client = client
        self.lock = lock

    def iter(self) -> typing.Iterator[LiveCell]:
        tip = int(self.client.get_tip_block_number(), 16)
        for n in range(tip + 1):
            block = self.client.get_block_by_number(hex(n))
            for tx in block['transactions']:
                for i, e in enumerate(tx['outputs']):
                    output = ckbdeploy.core.json_decode(pyckb.core.CellOutput, e)
                    if output.lock != self.lock or output.type or tx['outputs_data'][i] != '0x':
                        continue
                    out_point = pyckb.core.OutPoint(ckbdeploy.core.hex_decode(tx['hash']), i)
                    if self.client.get_live_cell(out_point.json(), False)['status'] != 'live':
                        continue
                    yield LiveCell(out_point, output)


def new(
    kind: str,
    client: ckbdeploy.rpc.Client,
    indexer: ckbdeploy.rpc.Client,
    lock: pyckb.core.Script,
) -> Collector:
    if kind == 'indexer':
        return IndexerCollector(indexer, lock)
    if kind == 'scan':
        return ScanCollector(client, lock)
    raise ckbdeploy.error.CodecError(f'unknown collector {kind!r}')
