from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from loguru import logger

from dca_alert_engine.decoding.idl import Idl, stringify_numbers
from dca_alert_engine.exceptions import DecodeError
from dca_alert_engine.models import RawInstruction, SwapInstructionData, TransactionView

NO_LOG_MARKER = "no-log-marker"
NO_PROGRAM_INSTRUCTION = "no-program-instruction"
DECODE_ERROR = "decode-error"
OTHER_INSTRUCTION = "other-instruction"


@dataclass(frozen=True)
class OpenDcaV2:
    data: SwapInstructionData
    fields: dict


@dataclass(frozen=True)
class Unrecognized:
    reason: str
    name: str | None = None


DecodedInstruction = Union[OpenDcaV2, Unrecognized]


def has_target_log(log_messages: list[str], instruction_name: str) -> bool:
    marker = f"Program log: Instruction: {instruction_name}"
    return any(marker in line for line in log_messages or [])


def first_program_instruction(
    instructions: list[RawInstruction], program_id: str
) -> RawInstruction | None:
    # Only the first instruction addressed to the program is considered
    for ix in instructions:
        if ix.program_id == program_id and ix.data:
            return ix
    return None


@dataclass
class InstructionDecoder:
    idl: Idl
    program_id: str
    instruction_name: str = "OpenDcaV2"

    def decode(self, tx: TransactionView) -> DecodedInstruction:
        if not has_target_log(tx.log_messages, self.instruction_name):
            return Unrecognized(NO_LOG_MARKER)
        ix = first_program_instruction(tx.instructions, self.program_id)
        if ix is None:
            return Unrecognized(NO_PROGRAM_INSTRUCTION)
        return self.decode_data(ix.data)

    def decode_data(self, data: bytes) -> DecodedInstruction:
        spec = self.idl.match(data)
        if spec is None:
            return Unrecognized(DECODE_ERROR)
        target = self.idl.find(self.instruction_name)
        if target is None or spec.name != target.name:
            return Unrecognized(OTHER_INSTRUCTION, name=spec.name)
        try:
            fields = stringify_numbers(self.idl.decode_args(spec, data))
            swap = SwapInstructionData.from_fields(fields)
        except (DecodeError, KeyError, ValueError, TypeError) as e:
            logger.debug("Failed to decode {} payload: {}", spec.name, e)
            return Unrecognized(DECODE_ERROR, name=spec.name)
        return OpenDcaV2(data=swap, fields=fields)
