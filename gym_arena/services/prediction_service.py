import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gym_arena.core.exceptions import IllegalPrediction, TournamentNotActive
from gym_arena.models import tournament as tournament_model
from gym_arena.models.match import Match
from gym_arena.models.prediction import Prediction
from gym_arena.services import gamification_service
from gym_arena.services.match_service import get_match

logger = logging.getLogger("gym_arena")


def _find_prediction(db: Session, user_id: str, match_id: str) -> Optional[Prediction]:
    return db.query(Prediction).filter(
        Prediction.user_id == user_id,
        Prediction.match_id == match_id,
    ).first()


def count_predictions(db: Session, user_id: str) -> int:
    return db.query(Prediction).filter(Prediction.user_id == user_id).count()


def record_prediction(db: Session, user_id: str, match_id: str, predicted_winner_id: str) -> Prediction:
    """
    Upserts the user's pick for a match. Only open while the tournament is
    active and the match has both players but no winner; resubmitting
    replaces the earlier pick. Has no effect on the bracket itself.
    """
    match = get_match(db, match_id)
    if match.tournament.status != tournament_model.STATUS_ACTIVE:
        raise TournamentNotActive("Predictions are only open while the tournament is active.")
    if match.winner_id:
        raise IllegalPrediction("This match has already been decided.")
    if not match.player_1_id or not match.player_2_id:
        raise IllegalPrediction("Both players must be known before predicting.")
    if predicted_winner_id not in (match.player_1_id, match.player_2_id):
        raise IllegalPrediction("Predicted winner must be one of the players in the match.")

    prediction = _find_prediction(db, user_id, match_id)
    first_pick = prediction is None
    if prediction:
        prediction.predicted_winner_id = predicted_winner_id
        db.commit()
    else:
        try:
            prediction = Prediction(user_id=user_id, match_id=match_id, predicted_winner_id=predicted_winner_id)
            db.add(prediction)
            db.flush()
            gamification_service.grant_xp(
                db, user_id, gamification_service.XP_REWARDS["PREDICTION_MADE"], "Prediction"
            )
            db.commit()
        except IntegrityError:
            # A concurrent submit inserted the pick between our lookup and insert
            db.rollback()
            prediction = _find_prediction(db, user_id, match_id)
            if prediction is None:
                raise
            first_pick = False
            prediction.predicted_winner_id = predicted_winner_id
            db.commit()

    db.refresh(prediction)
    logger.info(f"Prediction saved: user {user_id} picks {predicted_winner_id} in match {match_id}")
    if first_pick:
        gamification_service.check_achievements(
            db, user_id, "predictions_made", count_predictions(db, user_id)
        )
    return prediction


def get_user_predictions(db: Session, user_id: str, tournament_id: Optional[str] = None) -> List[Prediction]:
    query = db.query(Prediction).filter(Prediction.user_id == user_id)
    if tournament_id:
        query = query.join(Match).filter(Match.tournament_id == tournament_id)
    return query.order_by(Prediction.created_at.asc()).all()


def get_prediction_summary(db: Session, user_id: str, tournament_id: Optional[str] = None) -> dict:
    predictions = get_user_predictions(db, user_id, tournament_id)
    decided = [p for p in predictions if p.match.winner_id]
    correct = [p for p in decided if p.predicted_winner_id == p.match.winner_id]
    return {
        "user_id": user_id,
        "tournament_id": tournament_id,
        "total": len(predictions),
        "decided": len(decided),
        "correct": len(correct),
        "accuracy": round(len(correct) / len(decided) * 100, 1) if decided else 0.0,
    }
