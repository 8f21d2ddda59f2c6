"""
Concurrent booking simulator.

Fires many create_booking calls at one flight from a thread pool to show
that the seat inventory never oversells: with capacity K and N > K racing
callers, exactly K succeed and N - K are refused with SeatsExhaustedError.
"""

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from threading import Barrier, BrokenBarrierError
from typing import List, Optional, Sequence

from ..errors import SeatsExhaustedError
from ..models.simulation import ConcurrentBookingSimulationModel, UserSimulationModel
from .booking_engine import BookingEngine

logger = logging.getLogger(__name__)


class BookingSimulator:
    """
    Multi-user booking simulator for race condition demonstration.

    Features:
    - Configurable concurrency (one thread per simulated user)
    - All users released at once through a barrier to maximise contention
    - Per-attempt timing and failure classification
    """

    def __init__(self, engine: BookingEngine, max_workers: int = 64):
        """
        Args:
            engine: BookingEngine to book through
            max_workers: Upper bound on simultaneously running threads
        """
        self.engine = engine
        self.max_workers = max_workers

    def run_simulation(
        self,
        flight_id: int,
        user_ids: Sequence[int],
        start_barrier_timeout: float = 10.0,
    ) -> ConcurrentBookingSimulationModel:
        """
        Have every user try to book the flight at the same moment.

        Args:
            flight_id: Flight every user races for
            user_ids: One booking attempt per user id
            start_barrier_timeout: Seconds to wait for all threads to line up

        Returns:
            ConcurrentBookingSimulationModel: Simulation results and metrics
        """
        if not user_ids:
            raise ValueError("At least one user is required")

        flight = self.engine.flights.get_flight(flight_id)
        workers = min(self.max_workers, len(user_ids))
        barrier: Optional[Barrier] = Barrier(workers) if workers == len(user_ids) else None

        simulation = ConcurrentBookingSimulationModel(
            simulation_id=str(uuid.uuid4()),
            flight_id=flight_id,
            capacity=flight.capacity,
            num_concurrent_users=len(user_ids),
        )
        logger.info(
            f"Starting simulation {simulation.simulation_id} on flight {flight.flight_code} "
            f"with {len(user_ids)} concurrent users for {flight.capacity} seats"
        )

        start_time = time.time()
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(self._simulate_user_booking, flight_id, user_id, barrier, start_barrier_timeout)
                for user_id in user_ids
            ]
            results: List[UserSimulationModel] = [f.result() for f in futures]

        for result in results:
            if result.success:
                simulation.successful_bookings += 1
            elif result.error_kind == SeatsExhaustedError.__name__:
                simulation.exhausted_attempts += 1
            else:
                simulation.other_failures += 1

        simulation.average_response_time_ms = (
            sum(r.total_response_time_ms for r in results) / len(results)
        )
        simulation.simulation_duration_ms = int((time.time() - start_time) * 1000)
        simulation.confirmed_after = self.engine.bookings.count_confirmed_by_flight(flight_id)
        simulation.completed_at = datetime.now()

        logger.info(
            f"Simulation completed: {simulation.successful_bookings} booked, "
            f"{simulation.exhausted_attempts} refused (full), "
            f"{simulation.other_failures} other failures"
        )
        if simulation.oversold:
            logger.error(
                f"Flight {flight_id} oversold: {simulation.confirmed_after} confirmed "
                f"for {flight.capacity} seats"
            )
        return simulation

    def _simulate_user_booking(
        self,
        flight_id: int,
        user_id: int,
        barrier: Optional[Barrier],
        barrier_timeout: float,
    ) -> UserSimulationModel:
        user_sim = UserSimulationModel(user_id=user_id)

        if barrier is not None:
            try:
                barrier.wait(timeout=barrier_timeout)
            except BrokenBarrierError:
                logger.debug(f"Start barrier broken for user {user_id}, booking anyway")

        start_time = time.time()
        user_sim.attempt_start = datetime.now()
        try:
            booking = self.engine.create_booking(user_id, flight_id)
            user_sim.success = True
            user_sim.pnr = booking.pnr
        except Exception as e:
            user_sim.error_kind = type(e).__name__
            user_sim.error_message = str(e)
        finally:
            user_sim.attempt_end = datetime.now()
            user_sim.total_response_time_ms = int((time.time() - start_time) * 1000)

        return user_sim
