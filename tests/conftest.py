"""
BlockGraph - Pytest Configuration
===================================
Fixtures e configurazione per testing.

Fixture data:
- Genesis block (header + coinbase legacy)
- Block 170 di mainnet: header, coinbase e la spesa Satoshi -> Hal Finney
  (txid, merkle root e hash pubblicati)
- Transazione P2WPKH nativa del vettore BIP143 (firme verificabili)
- Identificatori pubblicati di blocchi mainnet (300096, 500044, ...)
- Blocco segwit costruito per i test (non di mainnet): coinbase con witness
  commitment, una spesa segwit P2WPKH e una transazione legacy P2PKH.
  Hash e identificatori attesi sono stati calcolati indipendentemente.
"""

import pytest

# Internal imports
from block_graph.config import get_settings, override_settings
from block_graph.codecs.header import BlockHeaderCodec
from block_graph.codecs.transaction import TransactionCodec
from block_graph.codecs.witness_commitment import WitnessCommitmentCodec
from block_graph.services.block_service import BlockService


# ============================================================================
# RAW FIXTURES: GENESIS BLOCK
# ============================================================================

GENESIS_HEADER_HEX = (
    "0100000000000000000000000000000000000000000000000000000000000000"
    "000000003ba3edfd7a7b12b27ac72c3e67768f617fc81bc3888a51323a9fb8aa"
    "4b1e5e4a29ab5f49ffff001d1dac2b7c"
)

GENESIS_COINBASE_HEX = (
    "01000000010000000000000000000000000000000000000000000000000000000000000000"
    "ffffffff4d04ffff001d0104455468652054696d65732030332f4a616e2f32303039204368"
    "616e63656c6c6f72206f6e206272696e6b206f66207365636f6e64206261696c6f757420"
    "666f722062616e6b73ffffffff0100f2052a01000000434104678afdb0fe5548271967f1a6"
    "7130b7105cd6a828e03909a67962e0ea1f61deb649f6bc3f4cef38c4f35504e51ec112de5c"
    "384df7ba0b8d578a4c702b6bf11d5fac00000000"
)

GENESIS_BLOCK_HEX = GENESIS_HEADER_HEX + "01" + GENESIS_COINBASE_HEX

GENESIS_HASH = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"
GENESIS_MERKLE_ROOT = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"
GENESIS_CID = "bagyacvran7riycvw6gzxfqngujdk4y7xj6jr5a3f4fnarhdi2ymqaaaaaaaa"
GENESIS_TX_ROOT_CID = "bagyqcvrahor637l2pmjle6whfq7go5upmf74qg6drcffcmr2t64kusy6lzfa"


# ============================================================================
# RAW FIXTURES: MAINNET BLOCK 170
# ============================================================================

BLOCK_170_HEADER_HEX = (
    "0100000055bd840a78798ad0da853f68974f3d183e2bd1db6a842c1feecf222a00000000"
    "ff104ccb05421ab93e63f8c3ce5c2c2e9dbb37de2764b3a3175c8166562cac7d"
    "51b96a49ffff001d283e9e70"
)

BLOCK_170_COINBASE_HEX = (
    "01000000010000000000000000000000000000000000000000000000000000000000000000"
    "ffffffff0704ffff001d0102ffffffff0100f2052a01000000434104d46c4968bde02899d2"
    "aa0963367c7a6ce34eec332b32e42e5f3407e052d64ac625da6f0718e7b302140434bd7257"
    "06957c092db53805b821a85b23a7ac61725bac00000000"
)

# Prima transazione tra persone: 10 BTC a Hal Finney, 40 BTC di resto
BLOCK_170_SPEND_HEX = (
    "0100000001c997a5e56e104102fa209c6a852dd90660a20b2d9c352423edce25857fcd3704"
    "000000004847304402204e45e16932b8af514961a1d3a1a25fdf3f4f7732e9d624c6c61548"
    "ab5fb8cd410220181522ec8eca07de4860a4acdd12909d831cc56cbbac4622082221a8768d"
    "1d0901ffffffff0200ca9a3b00000000434104ae1a62fe09c5f51b13905f07f06b99a2f715"
    "9b2225f374cd378d71302fa28414e7aab37397f554a7df5f142c21c1b7303b8a0626f1bade"
    "d5c72a704f7e6cd84cac00286bee0000000043410411db93e1dcdb8a016b49840f8c53bc1e"
    "b68a382e97b1482ecad7b148a6909a5cb2e0eaddfb84ccf9744464f82e160bfa9b8b64f9d4"
    "c03f999b8643f656b412a3ac00000000"
)

BLOCK_170_HEX = BLOCK_170_HEADER_HEX + "02" + BLOCK_170_COINBASE_HEX + BLOCK_170_SPEND_HEX

# Hash in ordine display
BLOCK_170_HASH = "00000000d1145790a8694403d4063f323d499e655c83426834d4ce2f8dd4a2ee"
BLOCK_170_PREV_HASH = "000000002a22cfee1f2c846adbd12b3e183d4f97683f85dad08a79780a84bd55"
BLOCK_170_MERKLE_ROOT = "7dac2c5666815c17a3b36427de37bb9d2e2c5ccec3f8633eb91a4205cb4c10ff"
BLOCK_170_COINBASE_TXID = "b1fea52486ce0c62bb442b530a3f0132b826c74e473d1f2c220bfa78111c5082"
BLOCK_170_SPEND_TXID = "f4184fc596403b9d638783cf57adfe4c75c605f6356fbc91338530e9831e9e16"
BLOCK_170_FUNDING_TXID = "0437cd7f8525ceed2324359c2d0ba26006d92d856a9c20fa0241106ee5a597c9"

BLOCK_170_CID = "bagyacvra52rnjdjpz3kdi2ccqnoglhsjhuzd6bwuancgtkeqk4kncaaaaaaa"
BLOCK_170_PARENT_CID = "bagyacvrakw6yictypgfnbwufh5ujotz5da7cxuo3nkccyh7oz4rcuaaaaaaa"
BLOCK_170_TX_ROOT_CID = "bagyqcvra74iezsyfiinlsptd7db44xbmf2o3wn66e5slhiyxlsawmvrmvr6q"
BLOCK_170_SPEND_CID = "bagyqcvrac2pb5a7jgccthen4n427mbogovgp5lkxz6byoy45hnajnrkpdd2a"
BLOCK_170_FUNDING_CID = "bagyqcvrazgl2lzlocbaqf6ratrviklozazqkeczntq2sii7nzysyk76ng4ca"


# ============================================================================
# RAW FIXTURES: BIP143 NATIVE P2WPKH
# ============================================================================

# Input 0 P2PK (scriptSig), input 1 P2WPKH (witness), lock time 17
BIP143_P2WPKH_HEX = (
    "01000000000102fff7f7881a8099afa6940d42d1e7f6362bec38171ea3edf433541db4e4ad"
    "969f00000000494830450221008b9d1dc26ba6a9cb62127b02742fa9d754cd3bebf337f7a5"
    "5d114c8e5cdd30be022040529b194ba3f9281a99f2b1c0a19c0489bc22ede944ccf4ecbab4"
    "cc618ef3ed01eeffffffef51e1b804cc89d182d279655c3aa89e815b1b309fe287d9b2b55d"
    "57b90ec68a0100000000ffffffff02202cb206000000001976a9148280b37df378db99f66f"
    "85c95a783a76ac7a6d5988ac9093510d000000001976a9143bde42dbee7e4dbe6a21b2d50c"
    "e2f0167faa815988ac000247304402203609e17b84f6a7d30c80bfa610b5b4542f32a8a0d5"
    "447a12fb1366d7f01cc44a0220573a954c4518331561406f90300e8f3358f51928d43c212a"
    "8caed02de67eebee0121025476c2e83188368da1ff3e292e7acafcdb3566bb0ad253f62fc7"
    "0f07aeee635711000000"
)

BIP143_P2WPKH_STRIPPED_HEX = (
    "0100000002fff7f7881a8099afa6940d42d1e7f6362bec38171ea3edf433541db4e4ad969f"
    "00000000494830450221008b9d1dc26ba6a9cb62127b02742fa9d754cd3bebf337f7a55d11"
    "4c8e5cdd30be022040529b194ba3f9281a99f2b1c0a19c0489bc22ede944ccf4ecbab4cc61"
    "8ef3ed01eeffffffef51e1b804cc89d182d279655c3aa89e815b1b309fe287d9b2b55d57b9"
    "0ec68a0100000000ffffffff02202cb206000000001976a9148280b37df378db99f66f85c9"
    "5a783a76ac7a6d5988ac9093510d000000001976a9143bde42dbee7e4dbe6a21b2d50ce2f0"
    "167faa815988ac11000000"
)

# Hash in ordine display
BIP143_P2WPKH_TXID = "e8151a2af31c368a35053ddd4bdb285a8595c769a3ad83e0fa02314a602d4609"
BIP143_P2WPKH_WTXID = "c36c38370907df2324d9ce9d149d191192f338b37665a82e78e76a12c909b762"
BIP143_P2WPKH_TX_CID = "bagyqcvrabfdc2yckgebpvyedvwrwtr4vqvncrw2l3u6qknmkgyopgkq2cxua"
BIP143_P2WPKH_WTX_CID = "bagyqcvramk3qtsisnltxqlvimv3lgohtsiirthiutxhnsjbd34dqsnzyntbq"
BIP143_SPENT_FROM_CIDS = (
    "bagyqcvra7737pca2qcm27juubvbndz7wgyv6yoaxd2r635btkqo3jzfns2pq",
    "bagyqcvra55i6doaezse5dawspfsvyovit2avwgzqt7ripwnswvovpoioy2fa",
)


# ============================================================================
# PUBLISHED MAINNET IDENTIFIERS
# ============================================================================

# (block hash, cid, parent cid, transactions root cid)
MAINNET_BLOCK_IDENTIFIERS = {
    300096: (
        "00000000000000006af82b3b4f3f00b11cc4ecd9fb75445c0a1238aee8093dd1",
        "bagyacvra2e6qt2fohajauxceox55t3gedsyqap2phmv7q2qaaaaaaaaaaaaa",
        "bagyacvratq5lon37bw4m3hcsks4bziemvxbqnhymurfho6aaaaaaaaaaaaaa",
        "bagyqcvra25ddbpncp4ld3jrhlwtbmkcpbhns2gqzpw772wvx3gnhanlqvcaa",
    ),
    500044: (
        "0000000000000000001f9ba01120351182680ceba085ffabeaa532cda35f2cc7",
        "bagyacvray4wf7i6ngks6vk77qwqowddiqiitkiarucnr6aaaaaaaaaaaaaaa",
        "bagyacvralvuxpilqt6bzln2rqr4cenhfb2mwjlqdocahkaaaaaaaaaaaaaaa",
        "bagyqcvrazne74w2idcauh7nkknrotabw2bpqgzd6t4naffmy45ee63uvl7nq",
    ),
    525343: (
        "0000000000000000000ea6d3c8715be17b0f79828bb6872239590bf053c03122",
        "bagyacvraeiy4au7qbnmtsiuhw2fye6ipppqvw4oi2ota4aaaaaaaaaaaaaaa",
        "bagyacvraheys4ddczzou42mgenuc2o5mhykddmwkyckboaaaaaaaaaaaaaaa",
        "bagyqcvracrfe3wh5222eetszamw6gbued6h3ygauact6jt72mfey37lduo2q",
    ),
}


# ============================================================================
# RAW FIXTURES: SEGWIT BLOCK (costruito per i test)
# ============================================================================

SEGWIT_HEADER_HEX = (
    "00000020a1b5e612bdd89a5c8f7eb2f0b9d7f58e6b4e7d0d2a5d2b0000000000"
    "00000000"
    "51fbca2d0e1bb1939b695eb3591649d25518fcf1483cba1cb40bf26259bb902a"
    "6d0a385a4596001887d61200"
)

# Coinbase: forma completa (witness = reserved value di 32 byte zero)
COINBASE_WITNESS_HEX = (
    "01000000000101"
    "0000000000000000000000000000000000000000000000000000000000000000ffffffff"
    "11034ca1070c2f626c6f636b67726170682fffffffff"
    "02"
    "807c814a00000000160014751e76e8199196d454941c45d1b3a323f1433bd6"
    "0000000000000000266a24aa21a9ed"
    "c632dc8d3456412addf26d5c23362c136165731c8b2ac8a8a2321dd7a079e355"
    "01200000000000000000000000000000000000000000000000000000000000000000"
    "00000000"
)

COINBASE_BASE_HEX = (
    "0100000001"
    "0000000000000000000000000000000000000000000000000000000000000000ffffffff"
    "11034ca1070c2f626c6f636b67726170682fffffffff"
    "02"
    "807c814a00000000160014751e76e8199196d454941c45d1b3a323f1433bd6"
    "0000000000000000266a24aa21a9ed"
    "c632dc8d3456412addf26d5c23362c136165731c8b2ac8a8a2321dd7a079e355"
    "00000000"
)

# Spesa P2WPKH (version 2, RBF sequence, lock time 500043)
SEGWIT_TX_HEX = (
    "02000000000101"
    "016f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f"
    "0000000000fdffffff"
    "0100e1f505000000001600141d0f172a0ecb48aee1be1f2687d2963ae33f71a1"
    "02"
    "473044022000112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
    "022000112233445566778899aabbccddeeff00112233445566778899aabbccddeeff01"
    "210279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "4ba10700"
)

SEGWIT_TX_STRIPPED_HEX = (
    "0200000001"
    "016f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f6f"
    "0000000000fdffffff"
    "0100e1f505000000001600141d0f172a0ecb48aee1be1f2687d2963ae33f71a1"
    "4ba10700"
)

# Spesa legacy P2PKH -> P2PKH + P2SH
LEGACY_TX_HEX = (
    "0100000001"
    "908f7e6d5c4b3a291807f6e5d4c3b2a1908f7e6d5c4b3a291807f6e5d4c3b2a1"
    "01000000"
    "6a473044022000112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
    "022000112233445566778899aabbccddeeff00112233445566778899aabbccddeeff01"
    "210279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "ffffffff"
    "02"
    "50c30000000000001976a91489abcdefabbaabbaabbaabbaabbaabbaabbaabba88ac"
    "809698000000000017a914deadbeefdeadbeefdeadbeefdeadbeefdeadbeef87"
    "00000000"
)

SEGWIT_BLOCK_HEX = (
    SEGWIT_HEADER_HEX + "03" + COINBASE_WITNESS_HEX + SEGWIT_TX_HEX + LEGACY_TX_HEX
)

# Hash in ordine interno (wire order)
COINBASE_TXID = "52a5b2d1a0b44edb6c433a9f1e403aeae16e468d073ad9e6d7a8ddecfbeccfa5"
COINBASE_WTXID = "d0e325aa025caa06f4e79fa1e8d2990ed04375e81802066e4aded419c3612e14"
SEGWIT_TXID = "6d17a94cbb8424b6ce59863b833275b8eeaba46dece5447380f606e33f718e1c"
SEGWIT_WTXID = "82eba4da9f5acf180bebc46ea256925ae3bf62f57377cb1b583adb0957f44fe7"
LEGACY_TXID = "edee3b29c18436f563fd47f13aab832b4f47f60b448b95617a2b452ecc69bf09"

MERKLE_LEFT = "0df932fb80a715599dd5ab7c262489e5be756b7208a73b5d9fd1e0cbb84a78c1"
MERKLE_RIGHT = "29ba63c41b296408b1136b5f4ac0d681e7a047ad507932263ac94d47a61e8460"
MERKLE_ROOT = "51fbca2d0e1bb1939b695eb3591649d25518fcf1483cba1cb40bf26259bb902a"
WITNESS_LEFT = "692818b84f89e066f54e44505ad05bca6cc5f7277bf7dcf34ab00d099a892ca6"
WITNESS_ROOT = "7c0439d0630213519d83299999eeb79646b535bbd0ae1115458a6d1728da6138"
WITNESS_COMMITMENT = "c632dc8d3456412addf26d5c23362c136165731c8b2ac8a8a2321dd7a079e355"

# Hash in ordine display
SEGWIT_BLOCK_HASH = "563f0a3fa144cfd9dd9c3bb09c4ce72e60eb1f645c7d3ec82bf54933c93b318f"
SEGWIT_PREV_HASH = "0000000000000000002b5d2a0d7d4e6b8ef5d7b9f0b27e8f5c9ad8bd12e6b5a1"
SEGWIT_TXID_DISPLAY = "1c8e713fe306f6807344e5ec6da4abeeb87532833b8659ceb62484bb4ca9176d"
SEGWIT_WTXID_DISPLAY = "e74ff45709db3a581bcb7773f562bfe35a9256a26ec4eb0b18cf5a9fdaa4eb82"
MERKLE_ROOT_DISPLAY = "2a90bb5962f20bb41cba3c48f1fc1855d2491659b35e699b93b11b0e2dcafb51"

# Content identifiers
SEGWIT_BLOCK_CID = "bagyacvrar4ytxsjtjh2sxsb6pvogih7lmaxoote4wa5zzxozz5ckcpykh5la"
SEGWIT_PARENT_CID = "bagyacvraug26mev53cnfzd36wlyltv7vrzvu47infjoswaaaaaaaaaaaaaaa"
SEGWIT_TX_ROOT_CID = "bagyqcvrakh54uliodoyzhg3jl2zvsfsj2jkrr7hrja6luhfubpzgewn3sava"
WITNESS_COMMITMENT_CID = "bagzacvrayyznzdjukzasvxpsnvocgnrmcnqwk4y4rmvmrkfcgio5pidz4nkq"
LEGACY_TX_CID = "bagyqcvra5xxdwkobqq3pky75i7ytvk4dfnhup5qlisfzkyl2fncs5tdjx4eq"
SEGWIT_WTX_CID = "bagyqcvraqlv2jwu7llhrqc7lyrxkevusllr36yxvon34wg2yhlnqsv7uj7tq"
SEGWIT_SPENT_FROM_CID = "bagyqcvraafxw633pn5xw633pn5xw633pn5xw633pn5xw633pn5xw633pn5xq"


# ============================================================================
# SETTINGS ISOLATION
# ============================================================================

@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Ogni test parte da settings ricaricati dall'environment"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_config():
    """Test configuration (policy di verifica strict)"""
    return override_settings(
        log_level="WARNING",
        verify_merkle_root=True,
        require_witness_commitment=True,
    )


@pytest.fixture
def lenient_config():
    """Configuration che riporta i mismatch senza sollevare"""
    return override_settings(
        verify_merkle_root=False,
        require_witness_commitment=False,
    )


# ============================================================================
# CODEC FIXTURES
# ============================================================================

@pytest.fixture
def header_codec():
    return BlockHeaderCodec()


@pytest.fixture
def tx_codec():
    return TransactionCodec()


@pytest.fixture
def commitment_codec():
    return WitnessCommitmentCodec()


@pytest.fixture
def block_service(test_config):
    return BlockService(test_config)


# ============================================================================
# DATA FIXTURES
# ============================================================================

@pytest.fixture
def genesis_header_bytes():
    return bytes.fromhex(GENESIS_HEADER_HEX)


@pytest.fixture
def genesis_block_bytes():
    return bytes.fromhex(GENESIS_BLOCK_HEX)


@pytest.fixture
def segwit_block_bytes():
    return bytes.fromhex(SEGWIT_BLOCK_HEX)


@pytest.fixture
def segwit_tx_bytes():
    return bytes.fromhex(SEGWIT_TX_HEX)


@pytest.fixture
def legacy_tx_bytes():
    return bytes.fromhex(LEGACY_TX_HEX)


@pytest.fixture
def coinbase_bytes():
    return bytes.fromhex(COINBASE_WITNESS_HEX)


@pytest.fixture
def block_170_bytes():
    return bytes.fromhex(BLOCK_170_HEX)


@pytest.fixture
def bip143_tx_bytes():
    return bytes.fromhex(BIP143_P2WPKH_HEX)


@pytest.fixture
def genesis_block(block_service, genesis_block_bytes):
    """Genesis block decodificato"""
    return block_service.decode_block(genesis_block_bytes)


@pytest.fixture
def block_170(block_service, block_170_bytes):
    """Block 170 di mainnet decodificato"""
    return block_service.decode_block(block_170_bytes)


@pytest.fixture
def segwit_block(block_service, segwit_block_bytes):
    """Blocco segwit di test decodificato"""
    return block_service.decode_block(segwit_block_bytes)


@pytest.fixture
def sample_genesis_porcelain():
    """getblockheader del genesis (node RPC) con chain context"""
    return {
        "hash": GENESIS_HASH,
        "confirmations": 1,
        "height": 0,
        "version": 1,
        "versionHex": "00000001",
        "merkleroot": GENESIS_MERKLE_ROOT,
        "time": 1231006505,
        "mediantime": 1231006505,
        "nonce": 2083236893,
        "bits": "1d00ffff",
        "difficulty": 1,
        "chainwork": "0000000000000000000000000000000000000000000000000000000100010001",
        "nTx": 1,
        "nextblockhash": "00000000839a8e6886ab5951d76f411475428afc90947ee320161bbf18eb6048",
    }
