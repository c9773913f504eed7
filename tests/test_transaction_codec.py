"""
BlockGraph - Transaction Codec Tests
======================================
Legacy e segwit: round trip, hash, identificatori ed encoding malformati.
"""

import pytest

from block_graph.constants import CODEC_TX_CODE, NULL_HASH
from block_graph.errors import (
    CodecTypeError,
    InvalidCompactSizeError,
    InvalidWitnessError,
    MalformedEncodingError,
    TrailingDataError,
    TruncatedBufferError,
)

from conftest import (
    BIP143_P2WPKH_STRIPPED_HEX,
    BIP143_P2WPKH_TX_CID,
    BIP143_P2WPKH_TXID,
    BIP143_P2WPKH_WTX_CID,
    BIP143_P2WPKH_WTXID,
    BIP143_SPENT_FROM_CIDS,
    BLOCK_170_FUNDING_CID,
    BLOCK_170_SPEND_CID,
    BLOCK_170_SPEND_HEX,
    BLOCK_170_SPEND_TXID,
    COINBASE_BASE_HEX,
    COINBASE_TXID,
    COINBASE_WTXID,
    LEGACY_TX_CID,
    LEGACY_TX_HEX,
    LEGACY_TXID,
    SEGWIT_SPENT_FROM_CID,
    SEGWIT_TX_STRIPPED_HEX,
    SEGWIT_TXID,
    SEGWIT_TXID_DISPLAY,
    SEGWIT_WTX_CID,
    SEGWIT_WTXID,
    SEGWIT_WTXID_DISPLAY,
)


class TestLegacyTransaction:
    """Test legacy (non-segwit) transactions"""

    def test_decode(self, tx_codec, legacy_tx_bytes):
        """Test decoded fields"""
        tx = tx_codec.decode(legacy_tx_bytes)

        assert tx.version == 1
        assert tx.lock_time == 0
        assert len(tx.inputs) == 1
        assert tx.inputs[0].prev_index == 1
        assert len(tx.inputs[0].script_sig) == 106
        assert [output.value for output in tx.outputs] == [50000, 10000000]
        assert not tx.has_witness

    def test_forms_coincide(self, tx_codec, legacy_tx_bytes):
        """Test full and stripped encodings are identical"""
        tx = tx_codec.decode(legacy_tx_bytes)

        assert tx_codec.encode(tx) == legacy_tx_bytes
        assert tx_codec.encode_no_witness(tx) == legacy_tx_bytes
        assert tx_codec.txid(tx) == tx_codec.wtxid(tx)
        assert tx_codec.txid(tx).hex() == LEGACY_TXID

    def test_identifier(self, tx_codec, legacy_tx_bytes):
        tx = tx_codec.decode(legacy_tx_bytes)

        assert tx_codec.identifier(tx).encode() == LEGACY_TX_CID
        assert tx_codec.identifier(tx, witness=False).encode() == LEGACY_TX_CID

    def test_weight(self, tx_codec, legacy_tx_bytes):
        """Test weight is four times the size"""
        tx = tx_codec.decode(legacy_tx_bytes)
        assert tx_codec.weight(tx) == 4 * 223


class TestSegwitTransaction:
    """Test segwit transactions"""

    def test_decode(self, tx_codec, segwit_tx_bytes):
        """Test decoded fields and witness stack"""
        tx = tx_codec.decode(segwit_tx_bytes)
        tx_input = tx.inputs[0]

        assert tx.version == 2
        assert tx.lock_time == 500043
        assert tx.has_witness
        assert tx_input.prev_hash == bytes.fromhex("01" + "6f" * 31)
        assert tx_input.script_sig == b""
        assert tx_input.sequence == 0xfffffffd
        assert [len(item) for item in tx_input.witness] == [71, 33]
        assert tx.outputs[0].value == 100000000

    def test_round_trip(self, tx_codec, segwit_tx_bytes):
        """Test both serialized forms"""
        tx = tx_codec.decode(segwit_tx_bytes)

        assert tx_codec.encode(tx) == segwit_tx_bytes
        assert tx_codec.encode(tx, witness=False) == bytes.fromhex(SEGWIT_TX_STRIPPED_HEX)

    def test_stripped_decodes_without_witness(self, tx_codec, segwit_tx_bytes):
        """Test stripped form decodes to the same tx minus witnesses"""
        stripped = tx_codec.decode(bytes.fromhex(SEGWIT_TX_STRIPPED_HEX))

        assert not stripped.has_witness
        assert tx_codec.txid(stripped) == tx_codec.txid(tx_codec.decode(segwit_tx_bytes))

    def test_hashes(self, tx_codec, segwit_tx_bytes):
        """Test txid hashes the stripped form, wtxid the full form"""
        tx = tx_codec.decode(segwit_tx_bytes)

        assert tx_codec.txid(tx).hex() == SEGWIT_TXID
        assert tx_codec.wtxid(tx).hex() == SEGWIT_WTXID
        assert tx_codec.txid(tx) != tx_codec.wtxid(tx)

    def test_identifiers(self, tx_codec, segwit_tx_bytes):
        tx = tx_codec.decode(segwit_tx_bytes)

        assert tx_codec.identifier(tx).encode() == SEGWIT_WTX_CID
        assert tx_codec.identifier(tx, witness=False).digest.hex() == SEGWIT_TXID
        assert tx_codec.identifier(tx).codec == CODEC_TX_CODE

    def test_spent_from(self, tx_codec, segwit_tx_bytes):
        """Test inputs link to the transaction they spend"""
        tx = tx_codec.decode(segwit_tx_bytes)
        assert tx.inputs[0].spent_from.encode() == SEGWIT_SPENT_FROM_CID

    def test_weight(self, tx_codec, segwit_tx_bytes):
        """Test weight and virtual size"""
        tx = tx_codec.decode(segwit_tx_bytes)
        porcelain = tx_codec.to_porcelain(tx)

        assert tx_codec.weight(tx) == 82 * 3 + 191
        assert porcelain["size"] == 191
        assert porcelain["weight"] == 437
        assert porcelain["vsize"] == 110


class TestMainnetTransactions:
    """Test published mainnet and BIP143 transactions"""

    def test_block_170_spend(self, tx_codec):
        """Test the first transaction between two people"""
        raw = bytes.fromhex(BLOCK_170_SPEND_HEX)
        tx = tx_codec.decode(raw)

        assert not tx.has_witness
        assert len(tx.inputs[0].script_sig) == 72
        assert [output.value for output in tx.outputs] == [1000000000, 4000000000]
        assert tx_codec.encode(tx) == raw
        assert tx_codec.txid(tx)[::-1].hex() == BLOCK_170_SPEND_TXID
        assert tx_codec.identifier(tx).encode() == BLOCK_170_SPEND_CID
        assert tx.inputs[0].spent_from.encode() == BLOCK_170_FUNDING_CID
        assert tx_codec.weight(tx) == 4 * 275

    def test_bip143_decode(self, tx_codec, bip143_tx_bytes):
        """Test P2PK input without witness next to a P2WPKH input"""
        tx = tx_codec.decode(bip143_tx_bytes)
        first, second = tx.inputs

        assert tx.version == 1
        assert tx.lock_time == 17
        assert tx.has_witness
        assert len(first.script_sig) == 73
        assert first.sequence == 0xffffffee
        assert first.witness == ()
        assert second.script_sig == b""
        assert [len(item) for item in second.witness] == [71, 33]
        assert [output.value for output in tx.outputs] == [112340000, 223450000]

    def test_bip143_forms(self, tx_codec, bip143_tx_bytes):
        tx = tx_codec.decode(bip143_tx_bytes)

        assert tx_codec.encode(tx) == bip143_tx_bytes
        assert tx_codec.encode_no_witness(tx) == bytes.fromhex(BIP143_P2WPKH_STRIPPED_HEX)

    def test_bip143_hashes(self, tx_codec, bip143_tx_bytes):
        """Test txid and wtxid of the signed vector"""
        tx = tx_codec.decode(bip143_tx_bytes)
        porcelain = tx_codec.to_porcelain(tx)

        assert porcelain["txid"] == BIP143_P2WPKH_TXID
        assert porcelain["hash"] == BIP143_P2WPKH_WTXID
        assert porcelain["size"] == 343
        assert porcelain["weight"] == 233 * 3 + 343
        assert porcelain["vsize"] == 261

    def test_bip143_identifiers(self, tx_codec, bip143_tx_bytes):
        tx = tx_codec.decode(bip143_tx_bytes)

        assert tx_codec.identifier(tx).encode() == BIP143_P2WPKH_WTX_CID
        assert tx_codec.identifier(tx, witness=False).encode() == BIP143_P2WPKH_TX_CID
        assert tuple(
            tx_input.spent_from.encode() for tx_input in tx.inputs
        ) == BIP143_SPENT_FROM_CIDS


class TestCoinbaseTransaction:
    """Test segwit coinbase"""

    def test_coinbase(self, tx_codec, coinbase_bytes):
        tx = tx_codec.decode(coinbase_bytes)

        assert tx.is_coinbase
        assert tx.inputs[0].spent_from is None
        assert tx.inputs[0].witness == (bytes(32),)
        assert tx.outputs[0].value == 1250000000
        assert tx.outputs[1].value == 0
        assert tx_codec.encode_no_witness(tx) == bytes.fromhex(COINBASE_BASE_HEX)
        assert tx_codec.txid(tx).hex() == COINBASE_TXID
        assert tx_codec.wtxid(tx).hex() == COINBASE_WTXID

    def test_coinbase_porcelain(self, tx_codec, coinbase_bytes):
        """Test coinbase vin format"""
        vin = tx_codec.to_porcelain(tx_codec.decode(coinbase_bytes))["vin"][0]

        assert vin["coinbase"] == "034ca1070c2f626c6f636b67726170682f"
        assert vin["txinwitness"] == ["00" * 32]
        assert "txid" not in vin


class TestMalformedTransactions:
    """Test rejection of malformed encodings"""

    def test_truncated(self, tx_codec, segwit_tx_bytes):
        with pytest.raises(TruncatedBufferError):
            tx_codec.decode(segwit_tx_bytes[:-1])

    def test_truncated_inside_witness(self, tx_codec, segwit_tx_bytes):
        with pytest.raises(MalformedEncodingError):
            tx_codec.decode(segwit_tx_bytes[:150])

    def test_trailing_data(self, tx_codec, legacy_tx_bytes):
        with pytest.raises(TrailingDataError):
            tx_codec.decode(legacy_tx_bytes + b"\x00")

    def test_invalid_segwit_flag(self, tx_codec, segwit_tx_bytes):
        """Test marker followed by a flag other than 0x01"""
        data = bytearray(segwit_tx_bytes)
        data[5] = 0x02

        with pytest.raises(InvalidWitnessError) as exc_info:
            tx_codec.decode(bytes(data))

        assert exc_info.value.code == "INVALID_SEGWIT_FLAG"

    def test_superfluous_witness(self, tx_codec):
        """Test marker/flag with every witness stack empty"""
        body = SEGWIT_TX_STRIPPED_HEX[8:-8]
        data = bytes.fromhex("02000000" + "0001" + body + "00" + "4ba10700")

        with pytest.raises(InvalidWitnessError) as exc_info:
            tx_codec.decode(data)

        assert exc_info.value.code == "SUPERFLUOUS_WITNESS"

    def test_non_canonical_count(self, tx_codec):
        """Test input count encoded in a wider form than needed"""
        data = bytes.fromhex(LEGACY_TX_HEX[:8] + "fd0100" + LEGACY_TX_HEX[10:])

        with pytest.raises(InvalidCompactSizeError):
            tx_codec.decode(data)

    def test_count_exceeds_buffer(self, tx_codec):
        """Test huge input count fails before allocating inputs"""
        data = bytes.fromhex(LEGACY_TX_HEX[:8] + "fe00e1f505" + LEGACY_TX_HEX[10:])

        with pytest.raises(InvalidCompactSizeError) as exc_info:
            tx_codec.decode(data)

        assert exc_info.value.code == "COUNT_EXCEEDS_BUFFER"

    def test_script_length_exceeds_buffer(self, tx_codec):
        """Test scriptSig length larger than the remaining bytes"""
        prefix = LEGACY_TX_HEX[:10 + 72]
        data = bytes.fromhex(prefix + "fdffff" + LEGACY_TX_HEX[10 + 72 + 2:])

        with pytest.raises(MalformedEncodingError):
            tx_codec.decode(data)

    def test_non_bytes_input(self, tx_codec):
        with pytest.raises(CodecTypeError):
            tx_codec.decode(LEGACY_TX_HEX)

    def test_encode_wrong_type(self, tx_codec):
        with pytest.raises(CodecTypeError):
            tx_codec.encode({"version": 1})


class TestTransactionPorcelain:
    """Test node RPC JSON format"""

    def test_segwit_porcelain(self, tx_codec, segwit_tx_bytes):
        data = tx_codec.to_porcelain(tx_codec.decode(segwit_tx_bytes))

        assert data["txid"] == SEGWIT_TXID_DISPLAY
        assert data["hash"] == SEGWIT_WTXID_DISPLAY
        assert data["locktime"] == 500043
        assert data["vin"][0]["txid"] == ("6f" * 31) + "01"
        assert data["vout"][0]["value"] == 1.0
        assert data["vout"][0]["n"] == 0

    def test_porcelain_round_trip(self, tx_codec, segwit_tx_bytes, legacy_tx_bytes):
        """Test from_porcelain restores the transaction and its links"""
        for raw in (segwit_tx_bytes, legacy_tx_bytes):
            tx = tx_codec.decode(raw)
            restored = tx_codec.from_porcelain(tx_codec.to_porcelain(tx))

            assert restored == tx
            assert tx_codec.encode(restored) == raw
            assert restored.inputs[0].spent_from == tx.inputs[0].spent_from

    def test_link_inputs_skips_null_outpoint(self, tx_codec, coinbase_bytes):
        tx = tx_codec.link_inputs(tx_codec.decode(coinbase_bytes))

        assert tx.inputs[0].prev_hash == NULL_HASH
        assert tx.inputs[0].spent_from is None
