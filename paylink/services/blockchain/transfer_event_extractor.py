"""
Transfer event extraction.

Finds the ERC-20 Transfer log a transaction emitted for an expected
(token contract, sender, recipient) triple and decodes it.
"""

from loguru import logger

from paylink.models.transfer import DecodedTransferEvent, LogEntry, TransferReceipt
from paylink.utils.exceptions import InvalidEventData, NoMatchingTransfer, OnChainFailure
from paylink.utils.security import mask_address
from paylink.utils.validation import hex_to_int, hex_to_uint256, normalize_address, topic_to_address

from .core_constants import TRANSFER_EVENT_TOPIC


def is_matching_transfer(
    entry: LogEntry,
    token_contract: str,
    sender: str,
    recipient: str,
) -> bool:
    """
    Check a log entry against the expected transfer.

    Args:
        entry: Receipt log entry
        token_contract: Expected emitter (lowercase)
        sender: Expected "from" address (lowercase)
        recipient: Expected "to" address (lowercase)

    Returns:
        True if emitter, event signature and both parties match
    """
    if normalize_address(entry.emitter_address) != token_contract:
        return False

    topics = entry.topics
    if len(topics) < 3 or str(topics[0]).lower() != TRANSFER_EVENT_TOPIC:
        return False

    return (
        topic_to_address(topics[1]) == sender
        and topic_to_address(topics[2]) == recipient
    )


def extract_transfer_event(
    receipt: TransferReceipt,
    token_contract: str,
    sender: str,
    recipient: str,
) -> DecodedTransferEvent:
    """
    Extract the transfer leg the sender authorized.

    Sender, recipient and contract together identify a single leg; when a
    transaction repeats the same leg, the first log wins.

    Args:
        receipt: Transaction receipt
        token_contract: Token contract address
        sender: Sender settlement address
        recipient: Recipient settlement address

    Returns:
        DecodedTransferEvent without event time

    Raises:
        OnChainFailure: If the transaction reverted (logs are not scanned)
        NoMatchingTransfer: If no log matches
        InvalidEventData: If the matched log cannot be decoded
    """
    if not receipt.succeeded:
        raise OnChainFailure()

    token_contract = normalize_address(token_contract)
    sender = normalize_address(sender)
    recipient = normalize_address(recipient)

    for position, entry in enumerate(receipt.log_entries):
        if not is_matching_transfer(entry, token_contract, sender, recipient):
            continue

        amount = hex_to_uint256(entry.data_payload)
        if amount is None:
            raise InvalidEventData("Invalid transfer amount.")

        if entry.log_index is None:
            log_index = position
        else:
            log_index = hex_to_int(entry.log_index)
            if log_index is None:
                raise InvalidEventData("Invalid log index.")

        return DecodedTransferEvent(amount_base_units=amount, log_index=log_index)

    logger.warning(
        f"[Transfer Extractor] No transfer {mask_address(sender)} -> "
        f"{mask_address(recipient)} on {mask_address(token_contract)} "
        f"among {len(receipt.log_entries)} logs"
    )
    raise NoMatchingTransfer()
