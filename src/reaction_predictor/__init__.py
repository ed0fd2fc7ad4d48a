"""Reaction Predictor -- guess the emoji reaction a chat message will get."""

__version__ = "0.1.0"

from .classifier import NaiveBayesClassifier
from .config import Settings
from .evaluation import ClassificationMetrics, compute_metrics, cross_validate, stratified_k_fold
from .exceptions import (
    HistoryError,
    InvalidArgument,
    InvalidConfiguration,
    ModelNotReady,
    PipelineClosed,
    ReactorError,
    UnknownLabel,
)
from .history import TrainingSummary, collect_labels, load_messages, train_reactor
from .locks import ReadWriteLock
from .models import Message, Prediction, Reaction, ReactorState
from .pipeline import TrainingPipeline
from .preprocessing import Tokenizer, tokenize
from .reactor import Reactor

__all__ = [
    # Core
    "Reactor",
    "ReactorState",
    "Message",
    "Reaction",
    "Prediction",
    # Model
    "NaiveBayesClassifier",
    "Tokenizer",
    "tokenize",
    # Concurrency
    "ReadWriteLock",
    "TrainingPipeline",
    # History
    "TrainingSummary",
    "collect_labels",
    "load_messages",
    "train_reactor",
    # Evaluation
    "ClassificationMetrics",
    "compute_metrics",
    "cross_validate",
    "stratified_k_fold",
    # Configuration
    "Settings",
    # Errors
    "ReactorError",
    "InvalidConfiguration",
    "InvalidArgument",
    "UnknownLabel",
    "ModelNotReady",
    "PipelineClosed",
    "HistoryError",
]
