import ckbdeploy.error
import itertools
import random
import requests
import time
import typing

# Doc: https://github.com/nervosnetwork/ckb/tree/develop/rpc


class Client:
    def __init__(self, url: str) -> None:
        self.url = url

    def __repr__(self) -> str:
        return f'Client({self.url})'

    def call(self, method: str, params: typing.List) -> typing.Any:
        try:
            r = requests.post(self.url, json={
                'id': random.randint(0x00000000, 0xffffffff),
                'jsonrpc': '2.0',
                'method': method,
                'params': params,
            })
            r.raise_for_status()
            r = r.json()
        except requests.RequestException as e:
            raise ckbdeploy.error.NetworkError(f'{method} {self.url}: {e}') from e
        if 'error' in r:
            raise ckbdeploy.error.NetworkError(f'{method}: {r["error"]}')
        return r['result']

    def get_block_by_number(self, block_number: str) -> typing.Dict:
        return self.call('get_block_by_number', [block_number])

    def get_cells(self, search_key: typing.Dict, order: str, limit: str, after: typing.Optional[str]) -> typing.Dict:
        return self.call('get_cells', [search_key, order, limit, after])

    def get_live_cell(self, out_point: typing.Dict, with_data: bool) -> typing.Dict:
        return self.call('get_live_cell', [out_point, with_data])

    def get_tip_block_number(self) -> str:
        return self.call('get_tip_block_number', [])

    def get_transaction(self, tx_hash: str) -> typing.Dict:
        return self.call('get_transaction', [tx_hash])

    def send_transaction(self, transaction: typing.Dict, outputs_validator: typing.Optional[str] = None) -> str:
        return self.call('send_transaction', [transaction, outputs_validator])

    def wait(self, tx_hash: str) -> None:
        for _ in itertools.repeat(0):
            time.sleep(1)
            r = self.get_transaction(tx_hash)
            if r['tx_status']['status'] == 'committed':
                break
            if r['tx_status']['status'] == 'rejected':
                reason = r['tx_status'].get('reason')
                raise ckbdeploy.error.NetworkError(f'transaction {tx_hash} rejected: {reason}')


def dial(url: str, indexer_url: str) -> typing.Tuple[Client, Client]:
    # Nodes since v0.106 serve the indexer methods themselves, in which case both urls may point at the same node.
    return Client(url), Client(indexer_url)
