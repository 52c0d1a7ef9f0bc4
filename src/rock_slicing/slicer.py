"""
Fold of an ordered joint list over a growing collection of blocks.

Each joint is one step: every current block is cut independently and the
pieces are flattened into the next collection. Steps run strictly in joint
order; inside a step blocks can be processed on any worker in any order.

With more than one worker the steps are mapped over a process pool whose
initializer installs the joint tuple once per worker process, so each task
only ships a block and a joint index.
"""
from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from functools import partial
from itertools import chain, repeat
from typing import Iterable, Optional, Sequence, Tuple

from rock_slicing.block import Block
from rock_slicing.contracts import SliceTrace, SlicerConfig
from rock_slicing.geometry import Face, Joint

logger = logging.getLogger(__name__)

# Joint list installed in each worker process by the pool initializer.
_BROADCAST_JOINTS: Tuple[Joint, ...] = ()


def _install_broadcast_joints(joints: Tuple[Joint, ...]) -> None:
    global _BROADCAST_JOINTS
    _BROADCAST_JOINTS = joints


def _cut_with_broadcast_joint(block: Block, joint_index: int) -> Tuple[Block, ...]:
    return block.cut(_BROADCAST_JOINTS[joint_index])


def _finalize_block(block: Block, remove_redundant: bool, recenter: bool) -> Block:
    if remove_redundant:
        block = block.without_redundant_faces()
    if recenter and block.is_bounded:
        block = block.recentered()
    return block


def _is_process_pool_unavailable_error(exc: Exception) -> bool:
    """Whether *exc* means worker processes cannot run here, so the fold can go serial.

    Sandboxes without semaphores or fork permission fail while the pool
    starts; a worker killed mid-step breaks the pool. Errors raised by a cut
    itself are not in this set and reach the caller.
    """
    if isinstance(exc, (PermissionError, BrokenProcessPool)):
        return True
    if isinstance(exc, OSError) and "SC_SEM_NSEMS_MAX" in str(exc):
        return True
    return False


def cut_blocks(blocks: Iterable[Block], joint: Joint) -> Tuple[Block, ...]:
    """One fold step: cut every block by *joint* and flatten the pieces."""
    return tuple(chain.from_iterable(block.cut(joint) for block in blocks))


def _slice_serial(
    blocks: Tuple[Block, ...],
    joints: Tuple[Joint, ...],
    config: SlicerConfig,
    trace: SliceTrace,
) -> Tuple[Block, ...]:
    trace.executor = "serial"
    for index, joint in enumerate(joints):
        blocks = cut_blocks(blocks, joint)
        trace.step_block_counts.append(len(blocks))
        logger.info("Joint %d/%d: %d blocks", index + 1, len(joints), len(blocks))
    finalize = partial(
        _finalize_block,
        remove_redundant=config.remove_redundant_faces,
        recenter=config.recenter_blocks,
    )
    return tuple(finalize(block) for block in blocks)


def _slice_parallel(
    blocks: Tuple[Block, ...],
    joints: Tuple[Joint, ...],
    config: SlicerConfig,
    trace: SliceTrace,
) -> Tuple[Block, ...]:
    chunk_size = max(1, int(config.chunk_size))
    with ProcessPoolExecutor(
        max_workers=config.max_workers,
        initializer=_install_broadcast_joints,
        initargs=(joints,),
    ) as executor:
        trace.executor = "process_pool"
        for index in range(len(joints)):
            pieces = executor.map(
                _cut_with_broadcast_joint,
                blocks,
                repeat(index, len(blocks)),
                chunksize=chunk_size,
            )
            blocks = tuple(chain.from_iterable(pieces))
            trace.step_block_counts.append(len(blocks))
            logger.info("Joint %d/%d: %d blocks", index + 1, len(joints), len(blocks))

        finalize = partial(
            _finalize_block,
            remove_redundant=config.remove_redundant_faces,
            recenter=config.recenter_blocks,
        )
        return tuple(executor.map(finalize, blocks, chunksize=chunk_size))


def slice_rock_volume(
    origin: Sequence[float],
    rock_volume: Sequence[Face],
    joints: Sequence[Joint],
    config: Optional[SlicerConfig] = None,
    trace: Optional[SliceTrace] = None,
) -> Tuple[Block, ...]:
    """Cut the rock volume by every joint in order and prune the results.

    Args:
        origin: center of the seed block; rock volume offsets are measured from it.
        rock_volume: faces of the initial volume.
        joints: cutting planes, applied in this order.
        config: worker count, chunking and final clean-up options.
        trace: optional record of block counts after each joint.

    Returns:
        The final blocks, in fold order.
    """
    config = config or SlicerConfig()
    trace = trace if trace is not None else SliceTrace()
    joints = tuple(joints)
    seed = (Block.seed(origin, rock_volume),)
    logger.info(
        "Slicing rock volume of %d faces with %d joints", len(rock_volume), len(joints)
    )

    if config.max_workers > 1 and joints:
        try:
            return _slice_parallel(seed, joints, config, trace)
        except Exception as exc:
            if not _is_process_pool_unavailable_error(exc):
                raise
            logger.warning("Process pool unavailable (%s); falling back to serial slicing", exc)
            trace.step_block_counts.clear()
    return _slice_serial(seed, joints, config, trace)
